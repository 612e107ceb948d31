"""
Dock panels UI components.

This package provides the dock panels for the application:
- Properties: Form for the selected node or connection
- Console: Log and render status display
"""

from render_canvas.ui.panels.properties import PropertiesPanel
from render_canvas.ui.panels.console import ConsolePanel, QtLogHandler

__all__ = [
    "PropertiesPanel",
    "ConsolePanel",
    "QtLogHandler",
]
