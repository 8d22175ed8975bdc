"""
FlashDeck — Entry point
========================
Launch the application.
"""

import logging
import sys
import os

# Ensure project root is on the path so absolute imports work when running
# directly with `python main.py`.
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from db.database import AUDIO_DIR, get_session_factory, init_db
from db.store import Store
from core.audio_files import AudioFileManager
from ui.app import FlashDeckApp


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    init_db()
    app = FlashDeckApp(Store(get_session_factory()), AudioFileManager(AUDIO_DIR))
    app.mainloop()


if __name__ == "__main__":
    main()
