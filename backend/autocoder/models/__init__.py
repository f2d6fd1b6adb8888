from autocoder.models.workspace import Workspace
from autocoder.models.mod_folder import ModFolder
from autocoder.models.unit import Unit, UnitAsset
from autocoder.models.chat_thread import ChatThread
from autocoder.models.chat_message import ChatMessage

__all__ = ["Workspace", "ModFolder", "Unit", "UnitAsset", "ChatThread", "ChatMessage"]
