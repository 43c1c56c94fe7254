# DAVSync Output Module
# Rich-based console output

from davsync.output.console import Console, RichFolderListView, create_console

__all__ = [
    "Console",
    "RichFolderListView",
    "create_console",
]
