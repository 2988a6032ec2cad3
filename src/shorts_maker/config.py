import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_bool(key: str, default: str) -> bool:
    return os.getenv(key, default).lower() == "true"


# LLM Configuration
# Priority: Gemini -> OpenRouter -> Ollama (local fallback)
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY", "")
OPENROUTER_MODEL = os.getenv("OPENROUTER_MODEL", "tngtech/deepseek-r1t2-chimera:free")
OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.1:8b")
USE_OLLAMA_FALLBACK = _env_bool("USE_OLLAMA_FALLBACK", "true")

# Imagine Art API Configuration (visual generation)
IMAGINE_TOKEN = os.getenv("IMAGINE_TOKEN", "")
IMAGINE_API_URL = os.getenv("IMAGINE_API_URL", "https://api.vyro.ai/v2/image/generations")
IMAGINE_STYLE = os.getenv("IMAGINE_STYLE", "realistic")

# TTS Configuration
# Priority order: ElevenLabs > Edge-TTS > gTTS
ELEVENLABS_API_KEY = os.getenv("ELEVENLABS_API_KEY", "")
ELEVENLABS_VOICE_ID = os.getenv("ELEVENLABS_VOICE_ID", "21m00Tcm4TlvDq8ikWAM")  # Rachel
ELEVENLABS_MODEL_ID = os.getenv("ELEVENLABS_MODEL_ID", "eleven_turbo_v2_5")
TTS_USE_ELEVENLABS = _env_bool("TTS_USE_ELEVENLABS", "true")
TTS_USE_EDGE_TTS = _env_bool("TTS_USE_EDGE_TTS", "true")
TTS_EDGE_VOICE = os.getenv("TTS_EDGE_VOICE", "en-US-AriaNeural")
TTS_LANGUAGE = os.getenv("TTS_LANGUAGE", "en")

# Video Configuration
FPS = 30
VIDEO_WIDTH = 1080
VIDEO_HEIGHT = 1920  # Vertical format for YouTube Shorts (9:16)
VIDEO_ASPECT_RATIO = "9:16"
VIDEO_CODEC = "libx264"
AUDIO_CODEC = "aac"
SHOW_HOOK_CAPTIONS = _env_bool("SHOW_HOOK_CAPTIONS", "true")
HOOK_CAPTION_SECONDS = float(os.getenv("HOOK_CAPTION_SECONDS", "2.5"))

# YouTube Upload Configuration
YOUTUBE_CREDENTIALS_FILE = os.getenv("YOUTUBE_CREDENTIALS_FILE", "client_secret.json")
YOUTUBE_TOKEN_FILE = os.getenv("YOUTUBE_TOKEN_FILE", "token.pickle")
YOUTUBE_PRIVACY_STATUS = os.getenv("YOUTUBE_PRIVACY_STATUS", "public")  # public, unlisted, private
YOUTUBE_CATEGORY_ID = os.getenv("YOUTUBE_CATEGORY_ID", "22")  # 22 = People & Blogs

# Request bounds
MIN_DURATION_SECONDS = 20
MAX_DURATION_SECONDS = 120

# Plan bounds
MIN_BEATS = int(os.getenv("MIN_BEATS", "3"))
MAX_BEATS = int(os.getenv("MAX_BEATS", "12"))
DURATION_TOLERANCE = float(os.getenv("DURATION_TOLERANCE", "0.15"))  # fraction of requested duration

# Pipeline tuning
MAX_CONCURRENT_BEATS = int(os.getenv("MAX_CONCURRENT_BEATS", "3"))
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "2"))
PUBLISH_MAX_RETRIES = int(os.getenv("PUBLISH_MAX_RETRIES", "3"))
RETRY_BACKOFF_SECONDS = float(os.getenv("RETRY_BACKOFF_SECONDS", "1.0"))
RETRY_BACKOFF_MAX_SECONDS = float(os.getenv("RETRY_BACKOFF_MAX_SECONDS", "8.0"))
CALL_TIMEOUT_SECONDS = float(os.getenv("CALL_TIMEOUT_SECONDS", "90"))
PIPELINE_DEADLINE_SECONDS = float(os.getenv("PIPELINE_DEADLINE_SECONDS", "300"))
MAX_FAILED_BEAT_FRACTION = float(os.getenv("MAX_FAILED_BEAT_FRACTION", "0.3"))
SMALL_PLAN_BEATS = int(os.getenv("SMALL_PLAN_BEATS", "3"))  # any failure is fatal at or below this size

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Output directory (CLI only; the pipeline itself keeps artifacts in memory)
OUTPUT_DIR = os.getenv("OUTPUT_DIR", "output")


@dataclass(frozen=True)
class PipelineSettings:
    """Tuning knobs for one pipeline instance. Defaults come from the environment."""

    min_beats: int = MIN_BEATS
    max_beats: int = MAX_BEATS
    duration_tolerance: float = DURATION_TOLERANCE
    max_concurrent_beats: int = MAX_CONCURRENT_BEATS
    max_retries: int = MAX_RETRIES
    publish_max_retries: int = PUBLISH_MAX_RETRIES
    retry_backoff_seconds: float = RETRY_BACKOFF_SECONDS
    retry_backoff_max_seconds: float = RETRY_BACKOFF_MAX_SECONDS
    call_timeout_seconds: float = CALL_TIMEOUT_SECONDS
    deadline_seconds: float = PIPELINE_DEADLINE_SECONDS
    max_failed_beat_fraction: float = MAX_FAILED_BEAT_FRACTION
    small_plan_beats: int = SMALL_PLAN_BEATS
    category_id: str = YOUTUBE_CATEGORY_ID
    privacy_status: str = YOUTUBE_PRIVACY_STATUS
