"""Module entrypoint for running Soda TTS as ``python -m soda_tts``."""

from __future__ import annotations

from soda_tts.cli import main


if __name__ == "__main__":
    main()
