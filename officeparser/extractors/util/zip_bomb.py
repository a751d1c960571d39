from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass

from officeparser.exceptions import ZipBombError


@dataclass(frozen=True)
class ZipBombLimits:
    """
    Heuristics for rejecting probable ZIP bombs in OOXML and ODF containers.

    The defaults are far above what real office documents reach, so only
    extreme archives are rejected.
    """

    max_entries: int = 50_000
    max_total_uncompressed_bytes: int = 4 * 1024 * 1024 * 1024  # 4 GiB
    max_single_uncompressed_bytes: int = 1 * 1024 * 1024 * 1024  # 1 GiB
    max_total_compression_ratio: float = 200.0
    max_entry_compression_ratio: float = 500.0


DEFAULT_ZIP_BOMB_LIMITS = ZipBombLimits()


def _suffix(source: str | None) -> str:
    return f" [{source}]" if source else ""


def validate_zipfile(
    zf: zipfile.ZipFile,
    *,
    limits: ZipBombLimits = DEFAULT_ZIP_BOMB_LIMITS,
    source: str | None = None,
) -> None:
    """
    Validate a ZIP container against high-confidence ZIP-bomb indicators.

    Only the central directory is inspected; nothing is decompressed.
    """
    infos = zf.infolist()

    if len(infos) > limits.max_entries:
        raise ZipBombError(
            f"ZIP container has too many entries ({len(infos)} > {limits.max_entries})"
            + _suffix(source)
        )

    total_uncompressed = 0
    total_compressed = 0

    for info in infos:
        if info.is_dir():
            continue

        file_size = info.file_size
        compressed_size = info.compress_size

        if file_size > limits.max_single_uncompressed_bytes:
            raise ZipBombError(
                f"ZIP entry too large ({file_size} bytes > {limits.max_single_uncompressed_bytes})"
                + _suffix(source)
            )

        if file_size > 0:
            if compressed_size <= 0:
                raise ZipBombError(
                    "ZIP entry has zero compressed size but non-zero uncompressed size"
                    + _suffix(source)
                )
            ratio = file_size / compressed_size
            if ratio > limits.max_entry_compression_ratio:
                raise ZipBombError(
                    f"ZIP entry compression ratio too high ({ratio:.1f} > {limits.max_entry_compression_ratio})"
                    + _suffix(source)
                )

        total_uncompressed += file_size
        total_compressed += compressed_size

        if total_uncompressed > limits.max_total_uncompressed_bytes:
            raise ZipBombError(
                f"ZIP total uncompressed size too large ({total_uncompressed} bytes > {limits.max_total_uncompressed_bytes})"
                + _suffix(source)
            )

    if total_uncompressed > 0:
        total_ratio = total_uncompressed / max(total_compressed, 1)
        if total_ratio > limits.max_total_compression_ratio:
            raise ZipBombError(
                f"ZIP total compression ratio too high ({total_ratio:.1f} > {limits.max_total_compression_ratio})"
                + _suffix(source)
            )


def open_zipfile(
    file_like: io.BytesIO,
    *,
    limits: ZipBombLimits = DEFAULT_ZIP_BOMB_LIMITS,
    source: str | None = None,
) -> zipfile.ZipFile:
    """
    Open a ZIP file and validate it for ZIP-bomb indicators.

    Caller owns the returned ZipFile and must close it.
    """
    file_like.seek(0)
    zf = zipfile.ZipFile(file_like, "r")
    try:
        validate_zipfile(zf, limits=limits, source=source)
    except Exception:
        zf.close()
        raise
    return zf

