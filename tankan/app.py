"""Application entry point and setup for the Tankan typing tutor."""

import logging
import sys

from PySide6.QtGui import QFont, QFontDatabase, QGuiApplication
from PySide6.QtWidgets import QApplication

from tankan.core.keyboard import KeyboardMapper
from tankan.core.levels import LevelRepository
from tankan.ui.practice_window import PracticeWindow

# Preferred Devanagari faces on Linux, Windows and macOS.
DEVANAGARI_FONTS = ["Noto Sans Devanagari", "Mangal", "Nirmala UI", "Kohinoor Devanagari", "Lohit Devanagari"]


def configure_logging() -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def load_application_font(app: QApplication) -> None:
    """Use the first installed Devanagari font as the application font."""
    installed = set(QFontDatabase.families())
    families = [family for family in DEVANAGARI_FONTS if family in installed]
    if not families:
        logging.warning("No Devanagari font found; matras may render as boxes")
        return

    app_font = QFont(families[0])
    app_font.setFamilies(families)
    app_font.setPointSize(11)
    app.setFont(app_font)
    QGuiApplication.setFont(app_font)

    logging.info("Using application font %s", families[0])


def run() -> None:
    """Initialize the application, load the layout and lessons, and show the window."""
    configure_logging()
    app = QApplication(sys.argv)
    app.setApplicationName("Tankan")
    app.setApplicationDisplayName("Tankan")

    load_application_font(app)

    mapper = KeyboardMapper.default()
    levels = LevelRepository()

    window = PracticeWindow(levels=levels, mapper=mapper)
    screen = QGuiApplication.primaryScreen()
    if screen is not None:
        geometry = screen.availableGeometry()
        window.resize(min(1200, geometry.width()), min(800, geometry.height()))
    window.show()

    sys.exit(app.exec())
