"""
Site Content API - Snapshot Assembler

Turns one submission (text fields, repeated array fields, uploaded images)
into a ``ContentSnapshot`` and persists it:

1. Validate the uploads (count, media type, size) before any side effect.
2. Parse the text fields into a ``ContentForm``.
3. Pair the array fields positionally and build the snapshot; length limits
   are enforced here, still before anything is written.
4. Write the images to the uploads directory.
5. Insert the snapshot.  If step 4 or 5 fails, every file this request
   wrote is deleted best-effort and ``SnapshotPersistError`` is raised.

There is no transaction spanning the files and the database row: the
cleanup in step 5 is a compensating action, and a crash between the two
writes can leave orphaned images behind.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Sequence

import aiofiles
from loguru import logger
from starlette.datastructures import UploadFile

from src.config import (
    ALLOWED_IMAGE_TYPES,
    MAX_IMAGE_SIZE_BYTES,
    MAX_IMAGE_SIZE_MB,
    MAX_UPLOAD_FILES,
    UPLOADS_URL_PREFIX,
)
from src.database import ContentStore
from src.schemas import ContentForm, ContentSnapshot, Feature, HeroSlide, Palpite, Resultado
from src.utils import coerce_numeros, generate_upload_filename, item_at

_READ_CHUNK = 65536


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
class UploadRejected(Exception):
    """An upload failed validation; nothing has been written."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class SnapshotPersistError(Exception):
    """Writing the images or the snapshot failed; this request's files were removed."""


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------
@dataclass
class PendingUpload:
    """An accepted image held in memory until the snapshot is ready to be written."""

    original_name: str
    content_type: str
    data: bytes
    filename: str

    @property
    def public_path(self) -> str:
        return f"{UPLOADS_URL_PREFIX}/{self.filename}"


def _media_type(upload: UploadFile) -> str:
    return (upload.content_type or "").split(";", 1)[0].strip().lower()


def select_file_parts(values: Iterable[Any]) -> List[UploadFile]:
    """Keep the real file parts of a form field (empty file inputs are skipped)."""
    return [
        value
        for value in values
        if isinstance(value, UploadFile) and value.filename
    ]


def validate_upload_headers(
    files: Sequence[UploadFile],
    max_files: int = MAX_UPLOAD_FILES,
) -> None:
    """Reject over-count submissions and unsupported media types."""
    if len(files) > max_files:
        raise UploadRejected(
            400, f"Too many files: {len(files)}. Maximum is {max_files}."
        )
    for upload in files:
        media_type = _media_type(upload)
        if media_type not in ALLOWED_IMAGE_TYPES:
            raise UploadRejected(
                400,
                f"Invalid file type for {upload.filename!r}: {media_type or 'unknown'}. "
                f"Allowed: {', '.join(sorted(ALLOWED_IMAGE_TYPES))}",
            )


async def read_uploads(
    files: Sequence[UploadFile],
    max_files: int = MAX_UPLOAD_FILES,
    max_bytes: int = MAX_IMAGE_SIZE_BYTES,
) -> List[PendingUpload]:
    """
    Validate *files* and read them into memory.

    Raises ``UploadRejected`` (400 for count or type, 413 for size) before
    anything touches the disk.
    """
    validate_upload_headers(files, max_files=max_files)

    pending: List[PendingUpload] = []
    for upload in files:
        chunks: List[bytes] = []
        total_size = 0
        while chunk := await upload.read(_READ_CHUNK):
            total_size += len(chunk)
            if total_size > max_bytes:
                raise UploadRejected(
                    413,
                    f"File {upload.filename!r} too large. "
                    f"Maximum size is {MAX_IMAGE_SIZE_MB}MB.",
                )
            chunks.append(chunk)

        media_type = _media_type(upload)
        pending.append(
            PendingUpload(
                original_name=upload.filename or "",
                content_type=media_type,
                data=b"".join(chunks),
                filename=generate_upload_filename(
                    upload.filename, ALLOWED_IMAGE_TYPES[media_type]
                ),
            )
        )

    if pending:
        logger.info(
            "📥 {} image(s) accepted ({} bytes)",
            len(pending),
            sum(len(p.data) for p in pending),
        )
    return pending


# ---------------------------------------------------------------------------
# Form parsing
# ---------------------------------------------------------------------------
def parse_content_form(form: Mapping[str, Any]) -> ContentForm:
    """
    Build a ``ContentForm`` from multipart form data or a JSON object.

    Multipart array fields may be repeated (``slideTitles=a&slideTitles=b``)
    or use the bracket suffix (``slideTitles[]``).  File parts are ignored.
    """
    getlist = getattr(form, "getlist", None)
    raw: Dict[str, Any] = {}

    for alias in ContentForm.scalar_field_aliases():
        value = form.get(alias)
        if value is not None and not isinstance(value, UploadFile):
            raw[alias] = value

    for alias in ContentForm.list_field_aliases():
        if getlist is None:
            value = form.get(alias, form.get(f"{alias}[]"))
            if value is not None:
                raw[alias] = value
            continue
        values = [
            value
            for value in [*getlist(alias), *getlist(f"{alias}[]")]
            if not isinstance(value, UploadFile)
        ]
        if values:
            raw[alias] = values

    return ContentForm.model_validate(raw)


# ---------------------------------------------------------------------------
# Positional pairing
# ---------------------------------------------------------------------------
def build_hero_slides(
    titles: List[str], descriptions: List[str], image_paths: List[str]
) -> List[HeroSlide]:
    """One slide per title; description and image are matched by index."""
    return [
        HeroSlide(
            title=title,
            description=item_at(descriptions, index),
            image=item_at(image_paths, index),
        )
        for index, title in enumerate(titles)
    ]


def build_palpites(dias: List[str], numeros: List[Any]) -> List[Palpite]:
    return [
        Palpite(dia=dia, numeros=coerce_numeros(item_at(numeros, index, None)))
        for index, dia in enumerate(dias)
    ]


def build_resultados(form: ContentForm) -> List[Resultado]:
    return [
        Resultado(
            data=data,
            numeros=coerce_numeros(item_at(form.resultados_numeros, index, None)),
            animal=item_at(form.resultados_animais, index),
            premiacao=item_at(form.resultados_premiacoes, index),
        )
        for index, data in enumerate(form.resultados_datas)
    ]


def build_features(titles: List[str], descriptions: List[str]) -> List[Feature]:
    return [
        Feature(title=title, description=item_at(descriptions, index))
        for index, title in enumerate(titles)
    ]


def assemble_snapshot(form: ContentForm, image_paths: List[str]) -> ContentSnapshot:
    """
    Pair the array fields of *form* into records.

    The four collections are independent: each is as long as its key array
    (``slideTitles``, ``palpitesDias``, ``resultadosDatas``,
    ``featureTitles``).  Missing companions default to empty values, so a
    submission with 3 slide titles and 1 image yields 3 slides, two of them
    without an image.

    Raises ``pydantic.ValidationError`` when a field exceeds its length limit.
    """
    return ContentSnapshot(
        hero_slides=build_hero_slides(
            form.slide_titles, form.slide_descriptions, image_paths
        ),
        palpites_title=form.palpites_title,
        palpites=build_palpites(form.palpites_dias, form.palpites_numeros),
        resultados_title=form.resultados_title,
        resultados=build_resultados(form),
        whatsapp_number=form.whatsapp_number,
        youtube_link=form.youtube_link,
        features=build_features(form.feature_titles, form.feature_descriptions),
    )


# ---------------------------------------------------------------------------
# Persistence with compensating cleanup
# ---------------------------------------------------------------------------
def cleanup_files(paths: Iterable[Path]) -> int:
    """Delete *paths* best-effort.  Errors are logged, never raised."""
    removed = 0
    for path in paths:
        try:
            path.unlink()
            removed += 1
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("⚠️ Could not remove uploaded file {}: {}", path, e)
    if removed:
        logger.info("🧹 Removed {} uploaded file(s) after failed submission", removed)
    return removed


async def persist_snapshot(
    store: ContentStore,
    snapshot: ContentSnapshot,
    uploads: Sequence[PendingUpload],
    uploads_dir: Path,
) -> Dict[str, Any]:
    """Write the images, then insert the snapshot; roll the images back on failure."""
    written: List[Path] = []
    try:
        for upload in uploads:
            path = uploads_dir / upload.filename
            # Tracked before the write so a partially written file is removed too.
            written.append(path)
            async with aiofiles.open(path, "wb") as f:
                await f.write(upload.data)

        return await store.insert_snapshot(snapshot.to_document())
    except Exception as e:
        logger.exception(f"❌ Failed to persist snapshot: {e}")
        cleanup_files(written)
        raise SnapshotPersistError(str(e)) from e


async def create_snapshot(
    store: ContentStore,
    form: ContentForm,
    uploads: Sequence[PendingUpload],
    uploads_dir: Path,
) -> Dict[str, Any]:
    """Assemble and persist one submission; returns the stored document."""
    snapshot = assemble_snapshot(form, [upload.public_path for upload in uploads])
    stored = await persist_snapshot(store, snapshot, uploads, uploads_dir)
    logger.info(
        "📝 Content replaced: {} slide(s), {} palpite(s), {} resultado(s), {} feature(s)",
        len(snapshot.hero_slides),
        len(snapshot.palpites),
        len(snapshot.resultados),
        len(snapshot.features),
    )
    return stored
