"""Configuration loading and validation for clipsync."""

import os
import logging
from typing import Dict, List, Optional
from pathlib import Path
from dotenv import load_dotenv
from rich.logging import RichHandler

# Project root (parent of src)
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent

# Load environment variables from .env file in project root
load_dotenv(PROJECT_ROOT / '.env')


def resolve_path(path: Optional[str], default_relative: str) -> str:
    """Resolve ``path`` against the project root, falling back to a default."""
    if not path:
        return str(PROJECT_ROOT / default_relative)
    if Path(path).is_absolute():
        return path
    return str(PROJECT_ROOT / path)


def load_config() -> Dict:
    """Load configuration from environment variables."""
    config = {
        # Record store credentials (required)
        # FAUNA_SECERT is the spelling older .env files used
        'fauna_secret': os.getenv('FAUNA_SECRET') or os.getenv('FAUNA_SECERT'),
        'fauna_collection': os.getenv('FAUNA_COLLECTION'),
        'fauna_domain': os.getenv('FAUNA_DOMAIN'),
        'fauna_page_size': int(os.getenv('FAUNA_PAGE_SIZE', '100')),

        # Storage root holding the clips and the index file
        'storage_dir': resolve_path(os.getenv('CLIPSYNC_STORAGE_DIR'), '.temp'),
        'index_filename': os.getenv('CLIPSYNC_INDEX_FILENAME', 'meta.json'),

        # Encoder
        'ffmpeg_path': os.getenv('FFMPEG_PATH', 'ffmpeg'),
        'ffprobe_path': os.getenv('FFPROBE_PATH', 'ffprobe'),
        'audio_codec': os.getenv('CLIPSYNC_AUDIO_CODEC', 'libmp3lame'),

        'log_level': os.getenv('LOG_LEVEL', 'INFO'),
        'log_file': os.getenv('CLIPSYNC_LOG_FILE'),
    }

    return config


def validate_config(config: Dict) -> List[str]:
    """Validate configuration and return list of errors."""
    errors = []

    if not config.get('fauna_secret'):
        errors.append("FAUNA_SECRET is required")

    if not config.get('fauna_collection'):
        errors.append("FAUNA_COLLECTION is required")

    if config.get('fauna_page_size', 100) < 1:
        errors.append("FAUNA_PAGE_SIZE must be a positive integer")

    storage_dir = config.get('storage_dir')
    if not storage_dir:
        errors.append("CLIPSYNC_STORAGE_DIR is required")
    else:
        try:
            Path(storage_dir).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            errors.append(f"Cannot create storage folder: {e}")

    index_filename = config.get('index_filename')
    if not index_filename or Path(index_filename).name != index_filename:
        errors.append("CLIPSYNC_INDEX_FILENAME must be a plain file name")

    return errors


def get_index_path(config: Dict) -> Path:
    """Return the path of the index file inside the storage folder."""
    return Path(config['storage_dir']) / config.get('index_filename', 'meta.json')


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Set up Rich console logging, plus a plain text log file if requested."""
    # Clear any existing handlers
    logging.root.handlers.clear()

    handlers: List[logging.Handler] = [
        RichHandler(
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            markup=False  # titles may contain square brackets
        )
    ]

    if log_file:
        file_handler = logging.FileHandler(resolve_path(log_file, 'clipsync.log'))
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        handlers=handlers,
        format="%(message)s"
    )

    # Suppress noisy third-party loggers
    noisy_loggers = [
        'yt_dlp',
        'faunadb',
        'httpx',
        'httpcore',
        'hpack',
        'urllib3.connectionpool',
    ]

    for logger_name in noisy_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
