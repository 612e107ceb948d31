"""
Render Canvas - Main Entry Point

This module provides the main entry point for the application.
"""

import argparse
import logging
import sys


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="render-canvas",
        description="Node canvas for AI-assisted rendering",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for Render Canvas.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    # Ensure we're running Python 3.11+
    if sys.version_info < (3, 11):
        print("Error: Render Canvas requires Python 3.11 or later")
        return 1

    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Import Qt here to avoid import overhead if just checking version
    from PySide6.QtWidgets import QApplication
    from PySide6.QtCore import Qt

    from render_canvas.core.config import AppConfig
    from render_canvas.ui.main_window import MainWindow

    # Create application instance
    app = QApplication(sys.argv[:1])
    app.setApplicationName("Render Canvas")
    app.setApplicationVersion("0.1.0")
    app.setOrganizationName("Render Canvas")

    # Enable high DPI scaling
    app.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    window = MainWindow(AppConfig.load())
    window.show()

    # Run event loop
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
