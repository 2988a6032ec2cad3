"""IVideoEncoder adapter: moviepy assembly of ordered segments into a vertical H.264/AAC MP4."""

import asyncio
import os
import tempfile
from typing import List, Sequence

import numpy as np
from moviepy import (
    AudioFileClip,
    CompositeVideoClip,
    ImageClip,
    VideoClip,
    VideoFileClip,
    concatenate_videoclips,
    vfx,
)
from PIL import Image, ImageDraw

from shorts_maker import config
from shorts_maker.adapters.imaging import cover_fit, load_font, open_image, wrap_text
from shorts_maker.domain.errors import PermanentServiceError
from shorts_maker.domain.models import EncodedVideo, VideoSegment, VisualKind
from shorts_maker.logging_config import get_logger
from shorts_maker.ports.interfaces import IVideoEncoder

logger = get_logger(__name__)

ZOOM_END = 1.08  # Ken Burns: slow zoom in over the whole segment


def ken_burns_clip(image: Image.Image, duration: float, zoom_end: float = ZOOM_END) -> VideoClip:
    """Slow centred zoom over a still that is already cover-fitted to the frame."""
    w, h = image.size

    def make_frame(t):
        zoom = 1 + (zoom_end - 1) * (t / duration if duration else 0)
        new_w, new_h = int(w * zoom), int(h * zoom)
        frame = image.resize((new_w, new_h), Image.Resampling.LANCZOS)
        crop_x = (new_w - w) // 2
        crop_y = (new_h - h) // 2
        return np.array(frame.crop((crop_x, crop_y, crop_x + w, crop_y + h)))

    return VideoClip(make_frame, duration=duration)


def render_caption(text: str, width: int) -> np.ndarray:
    """Hook caption: white bold text with a dark outline on a transparent strip."""
    font = load_font(max(40, width // 14))
    probe = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
    lines = wrap_text(probe, text.upper(), font, int(width * 0.86))
    line_height = int(font.size * 1.25)
    padding = 24
    strip = Image.new("RGBA", (width, line_height * len(lines) + padding * 2), (0, 0, 0, 0))
    draw = ImageDraw.Draw(strip)
    for i, line in enumerate(lines):
        line_w = draw.textlength(line, font=font)
        draw.text(
            ((width - line_w) / 2, padding + i * line_height),
            line,
            font=font,
            fill=(255, 255, 255, 255),
            stroke_width=4,
            stroke_fill=(0, 0, 0, 255),
        )
    return np.array(strip)


class MoviePyVideoEncoder(IVideoEncoder):
    """Renders on a worker thread; intermediate files live in a TemporaryDirectory."""

    def __init__(
        self,
        width: int = config.VIDEO_WIDTH,
        height: int = config.VIDEO_HEIGHT,
        fps: int = config.FPS,
        show_captions: bool = config.SHOW_HOOK_CAPTIONS,
        caption_seconds: float = config.HOOK_CAPTION_SECONDS,
    ):
        self.width = width
        self.height = height
        self.fps = fps
        self.show_captions = show_captions
        self.caption_seconds = caption_seconds

    async def encode(self, segments: Sequence[VideoSegment]) -> EncodedVideo:
        if not segments:
            raise PermanentServiceError("No segments to encode", service="video")
        return await asyncio.to_thread(self.create_video, list(segments))

    def create_video(self, segments: List[VideoSegment]) -> EncodedVideo:
        with tempfile.TemporaryDirectory(prefix="shorts_") as workdir:
            clips = []
            sources = []
            final = None
            try:
                for index, segment in enumerate(segments):
                    clips.append(self._segment_clip(segment, index, workdir, sources))
                final = concatenate_videoclips(clips, method="compose")
                output_path = os.path.join(workdir, "short.mp4")
                logger.info("🎬 Writing %d segments (%.2fs) at %dfps", len(clips), final.duration, self.fps)
                final.write_videofile(
                    output_path,
                    fps=self.fps,
                    codec=config.VIDEO_CODEC,
                    audio_codec=config.AUDIO_CODEC,
                    preset="fast",
                    audio_bitrate="192k",
                    temp_audiofile=os.path.join(workdir, "short_audio.m4a"),
                    threads=4,
                    logger=None,
                )
                duration = final.duration
                with open(output_path, "rb") as f:
                    data = f.read()
            except (OSError, ValueError, RuntimeError) as e:
                raise PermanentServiceError(f"Video encoding failed: {e}", service="video") from e
            finally:
                if final is not None:
                    final.close()
                for clip in clips + sources:
                    clip.close()

        logger.info("✅ Encoded video (%d bytes, %.2fs)", len(data), duration)
        return EncodedVideo(data=data, duration=duration)

    def _segment_clip(self, segment: VideoSegment, index: int, workdir: str, sources: list):
        audio_path = os.path.join(workdir, f"narration_{index}.mp3")
        with open(audio_path, "wb") as f:
            f.write(segment.narration.data)
        audio = AudioFileClip(audio_path)
        sources.append(audio)
        if audio.duration > segment.duration:
            audio = audio.subclipped(0, segment.duration)

        if segment.visual.kind == VisualKind.CLIP:
            base = self._video_clip(segment, index, workdir, sources)
        else:
            image = cover_fit(open_image(segment.visual.data), (self.width, self.height))
            base = ken_burns_clip(image, segment.duration)

        layers = [base]
        if self.show_captions and segment.caption:
            caption_duration = min(self.caption_seconds, segment.duration)
            caption = (
                ImageClip(render_caption(segment.caption, self.width), duration=caption_duration)
                .with_position(("center", int(self.height * 0.12)))
            )
            layers.append(caption)

        clip = CompositeVideoClip(layers, size=(self.width, self.height)) if len(layers) > 1 else base
        return clip.with_duration(segment.duration).with_audio(audio)

    def _video_clip(self, segment: VideoSegment, index: int, workdir: str, sources: list):
        """Cover-fit a generated clip; loop it when short, trim it when long."""
        path = os.path.join(workdir, f"visual_{index}.mp4")
        with open(path, "wb") as f:
            f.write(segment.visual.data)
        clip = VideoFileClip(path, audio=False)
        sources.append(clip)

        scale = max(self.width / clip.w, self.height / clip.h)
        clip = clip.resized(scale)
        clip = clip.cropped(
            x_center=clip.w / 2, y_center=clip.h / 2, width=self.width, height=self.height
        )
        if clip.duration < segment.duration:
            return clip.with_effects([vfx.Loop(duration=segment.duration)])
        return clip.subclipped(0, segment.duration)
