"""Image re-encoding: decode with the source codec, encode with the target codec's defaults."""
import io
import logging

from PIL import Image

from app.conversion.errors import DecodeError, EncodeError, UnsupportedTargetFormat
from app.conversion.models import SOURCE_DECODERS, EncodedImage, IntakeArtifact, TargetFormat

logger = logging.getLogger("converter.converter")

# Pixel modes each target codec can write without conversion
_ENCODABLE_MODES = {
    TargetFormat.JPEG: ("RGB", "L", "CMYK"),
    TargetFormat.PNG: ("1", "L", "LA", "I", "P", "RGB", "RGBA"),
}


class ImageConverter:
    """Stateless; safe to share across worker threads."""

    def convert(self, intake: IntakeArtifact, source_type: str, target: TargetFormat) -> EncodedImage:
        if not isinstance(target, TargetFormat):
            raise UnsupportedTargetFormat(f"Unsupported target format: {target!r}")
        decoder = SOURCE_DECODERS.get(source_type)
        formats = [decoder] if decoder else None
        # Failures are classified by phase: anything before encoding starts is a decode failure
        try:
            img = Image.open(intake.path, formats=formats)
        except Exception as e:
            raise DecodeError(f"Could not decode {intake.path.name} as {source_type}: {e}") from e
        with img:
            try:
                img.load()
            except Exception as e:
                raise DecodeError(f"Could not decode {intake.path.name} as {source_type}: {e}") from e
            return self._encode(img, target)

    def _encode(self, img: Image.Image, target: TargetFormat) -> EncodedImage:
        work = img
        buf = io.BytesIO()
        try:
            if work.mode not in _ENCODABLE_MODES[target]:
                work = work.convert("RGBA" if target is TargetFormat.PNG and "A" in work.getbands() else "RGB")
            work.save(buf, format=target.pil_format)
        except Exception as e:
            raise EncodeError(f"Could not encode {work.mode} image as {target.value}: {e}") from e
        logger.debug("Encoded %sx%s %s image as %s (%d bytes)", work.width, work.height, img.format, target.value, buf.tell())
        return EncodedImage(data=buf.getvalue(), target_format=target, width=work.width, height=work.height)
