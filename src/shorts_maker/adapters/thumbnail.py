"""IThumbnailRenderer adapter: Pillow composition of title over a generated background."""

import os
import tempfile

from moviepy import VideoFileClip
from PIL import Image, ImageDraw

from shorts_maker import config
from shorts_maker.adapters.imaging import cover_fit, load_font, open_image, to_png, wrap_text
from shorts_maker.domain.models import VisualAsset, VisualKind
from shorts_maker.ports.interfaces import IThumbnailRenderer

BRAND_BACKGROUND = (26, 26, 26)
BRAND_ACCENT = (255, 200, 0)
MAX_TITLE_LINES = 4


class PillowThumbnailRenderer(IThumbnailRenderer):
    def __init__(self, width: int = config.VIDEO_WIDTH, height: int = config.VIDEO_HEIGHT):
        self.width = width
        self.height = height

    def render(self, title: str, background: VisualAsset) -> bytes:
        image = cover_fit(self._background_image(background), (self.width, self.height))
        image = self._darken_lower_band(image)
        self._draw_title(image, title, top=int(self.height * 0.62))
        return to_png(image)

    def placeholder(self, title: str) -> bytes:
        image = Image.new("RGB", (self.width, self.height), BRAND_BACKGROUND)
        draw = ImageDraw.Draw(image)
        bar_h = max(12, self.height // 80)
        draw.rectangle([(0, int(self.height * 0.58)), (self.width, int(self.height * 0.58) + bar_h)], fill=BRAND_ACCENT)
        self._draw_title(image, title, top=int(self.height * 0.62))
        return to_png(image)

    def _background_image(self, background: VisualAsset) -> Image.Image:
        if background.kind != VisualKind.CLIP:
            return open_image(background.data)
        # First frame of a generated clip
        with tempfile.TemporaryDirectory(prefix="thumb_") as workdir:
            path = os.path.join(workdir, "background.mp4")
            with open(path, "wb") as f:
                f.write(background.data)
            clip = VideoFileClip(path, audio=False)
            try:
                frame = clip.get_frame(0)
            finally:
                clip.close()
        return Image.fromarray(frame).convert("RGB")

    def _darken_lower_band(self, image: Image.Image) -> Image.Image:
        """Vertical gradient from transparent to near-black over the lower half."""
        overlay = Image.new("L", (1, self.height), 0)
        start = self.height // 2
        for y in range(start, self.height):
            overlay.putpixel((0, y), int(210 * (y - start) / (self.height - start)))
        mask = overlay.resize((self.width, self.height))
        shade = Image.new("RGB", (self.width, self.height), (0, 0, 0))
        return Image.composite(shade, image, mask)

    def _draw_title(self, image: Image.Image, title: str, top: int) -> None:
        draw = ImageDraw.Draw(image)
        font = load_font(max(48, self.width // 11))
        lines = wrap_text(draw, title.upper(), font, int(self.width * 0.88))[:MAX_TITLE_LINES]
        line_height = int(font.size * 1.2)
        for i, line in enumerate(lines):
            line_w = draw.textlength(line, font=font)
            draw.text(
                ((self.width - line_w) / 2, top + i * line_height),
                line,
                font=font,
                fill=(255, 255, 255),
                stroke_width=5,
                stroke_fill=(0, 0, 0),
            )
