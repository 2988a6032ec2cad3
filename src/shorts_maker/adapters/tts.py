"""
INarrationService adapter.
Priority order: ElevenLabs > Edge-TTS > gTTS. The returned duration is measured
from the decoded, normalized audio with pydub.
"""

import asyncio
import io
from typing import List, Optional

import edge_tts
from elevenlabs.client import ElevenLabs
from gtts import gTTS
from pydub import AudioSegment
from pydub.effects import normalize
from pydub.exceptions import CouldntDecodeError

from shorts_maker import config
from shorts_maker.domain.errors import PermanentServiceError, TransientServiceError
from shorts_maker.domain.models import AudioAsset
from shorts_maker.logging_config import get_logger
from shorts_maker.ports.interfaces import INarrationService

logger = get_logger(__name__)


def measure_audio(data: bytes, fmt: str = "mp3") -> AudioAsset:
    """Decode, normalize and re-export narration; duration comes from the decoded samples."""
    try:
        audio = AudioSegment.from_file(io.BytesIO(data), format=fmt)
        # Only normalize; speed or volume tweaks make voices sound robotic
        audio = normalize(audio)
        buffer = io.BytesIO()
        audio.export(buffer, format="mp3", bitrate="192k")
    except CouldntDecodeError as e:
        raise PermanentServiceError(f"Could not decode narration audio: {e}", service="narration") from e
    except OSError as e:
        raise PermanentServiceError(f"Audio tooling unavailable: {e}", service="narration") from e
    return AudioAsset(data=buffer.getvalue(), duration_seconds=len(audio) / 1000.0)


class TTSNarrationService(INarrationService):
    """Text-to-speech with engine fallback."""

    def __init__(
        self,
        language: Optional[str] = None,
        use_elevenlabs: Optional[bool] = None,
        use_edge_tts: Optional[bool] = None,
        edge_voice: Optional[str] = None,
    ):
        self.language = language or config.TTS_LANGUAGE
        if use_elevenlabs is None:
            use_elevenlabs = config.TTS_USE_ELEVENLABS
        if use_edge_tts is None:
            use_edge_tts = config.TTS_USE_EDGE_TTS
        self.use_elevenlabs = bool(use_elevenlabs and config.ELEVENLABS_API_KEY)
        self.use_edge_tts = use_edge_tts
        self.edge_voice = edge_voice or config.TTS_EDGE_VOICE
        self.elevenlabs_voice_id = config.ELEVENLABS_VOICE_ID
        self.elevenlabs_model_id = config.ELEVENLABS_MODEL_ID
        self._elevenlabs_client: Optional[ElevenLabs] = None

    @property
    def engines(self) -> List[str]:
        engines = []
        if self.use_elevenlabs:
            engines.append("elevenlabs")
        if self.use_edge_tts:
            engines.append("edge_tts")
        engines.append("gtts")
        return engines

    async def synthesize(self, text: str) -> AudioAsset:
        text = (text or "").strip()
        if not text:
            raise PermanentServiceError("Narration text is empty", service="narration")

        failures = []
        for engine in self.engines:
            try:
                if engine == "edge_tts":
                    data = await self._generate_with_edge_tts(text)
                else:
                    data = await asyncio.to_thread(getattr(self, f"_generate_with_{engine}"), text)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning("⚠️  %s failed: %s, trying next engine", engine, e)
                failures.append(f"{engine}: {e}")
                continue
            if not data:
                failures.append(f"{engine}: no audio returned")
                continue
            asset = await asyncio.to_thread(measure_audio, data)
            logger.info("🔊 Narration via %s (%.2fs)", engine, asset.duration_seconds)
            return asset

        raise TransientServiceError(f"All TTS engines failed ({'; '.join(failures)})", service="narration")

    def _generate_with_elevenlabs(self, text: str) -> bytes:
        """Premium voices via the ElevenLabs client API."""
        if self._elevenlabs_client is None:
            self._elevenlabs_client = ElevenLabs(api_key=config.ELEVENLABS_API_KEY)
        response = self._elevenlabs_client.text_to_speech.convert(
            text=text,
            voice_id=self.elevenlabs_voice_id,
            model_id=self.elevenlabs_model_id,
            output_format="mp3_44100_128",
        )
        return b"".join(chunk for chunk in response if isinstance(chunk, bytes))

    async def _generate_with_edge_tts(self, text: str) -> bytes:
        """Microsoft Edge TTS (free, high quality); already async."""
        communicate = edge_tts.Communicate(text, self.edge_voice)
        chunks = []
        async for chunk in communicate.stream():
            if chunk["type"] == "audio":
                chunks.append(chunk["data"])
        return b"".join(chunks)

    def _generate_with_gtts(self, text: str) -> bytes:
        buffer = io.BytesIO()
        gTTS(text=text, lang=self.language, slow=False).write_to_fp(buffer)
        return buffer.getvalue()
