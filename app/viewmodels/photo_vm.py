"""Lightweight view model wrapper around `Photo`."""

from __future__ import annotations

from dataclasses import dataclass

from core.models import MediaType, Photo

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_size(size_bytes: int) -> str:
    """Human-readable size using 1024-based units, e.g. "1.4 MB"."""
    value = float(size_bytes)
    for unit in _SIZE_UNITS:
        if value < 1024 or unit == _SIZE_UNITS[-1]:
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size_bytes} B"


@dataclass
class PhotoVM:
    """Expose convenient properties for bindings/templates."""

    record: Photo

    @property
    def file_name(self) -> str:
        return self.record.filename

    @property
    def folder_path(self) -> str:
        """Folder relative to its source root."""
        return self.record.folder_rel

    @property
    def size_text(self) -> str:
        return format_size(self.record.size_bytes)

    @property
    def date_text(self) -> str:
        """Effective date as `YYYY-MM-DD HH:MM`."""
        return self.record.effective_date.strftime("%Y-%m-%d %H:%M")

    @property
    def dimensions_text(self) -> str:
        """`W × H` when both are known, otherwise empty."""
        w, h = self.record.width, self.record.height
        return f"{w} × {h}" if w and h else ""

    @property
    def is_video(self) -> bool:
        return self.record.media_type is MediaType.VIDEO

    @property
    def camera_text(self) -> str:
        """Camera make and model, or empty when no EXIF is known."""
        exif = self.record.exif
        if exif is None:
            return ""
        return " ".join(part for part in (exif.camera_make, exif.camera_model) if part)

    @property
    def exposure_text(self) -> str:
        """Compact exposure summary such as "f/2.8 · 1/125 · ISO 200 · 35mm"."""
        exif = self.record.exif
        if exif is None:
            return ""
        aperture = exif.aperture or ""
        if aperture and not aperture.lower().startswith("f/"):
            aperture = f"f/{aperture}"
        parts = [
            aperture,
            exif.shutter_speed or "",
            f"ISO {exif.iso}" if exif.iso is not None else "",
            exif.focal_length or "",
        ]
        return " · ".join(p for p in parts if p)
