"""
Per-application wiring of caches and repositories.

create_app builds one CmsServices per Flask app and stores it on
app.extensions; routes reach it through the get_* helpers below.
"""

import os
from dataclasses import dataclass

from flask import current_app

from constants import (
    CONTENT_FILENAME,
    DEFAULT_CONTENT,
    DEFAULT_SPEAKERS,
    SPEAKERS_FILENAME,
    USERS_FILENAME,
)
from doc_cache import CachedDocument
from repositories.content_repository import ContentRepository
from repositories.speakers_repository import SpeakersRepository
from repositories.user_repository import UserRepository
from uploads import ImageUploads

EXTENSION_KEY = "cms"


@dataclass
class CmsServices:
    speakers_document: CachedDocument
    content_document: CachedDocument
    speakers: SpeakersRepository
    content: ContentRepository
    users: UserRepository
    uploads: ImageUploads


def build_services(data_dir, uploads_dir, cache_ttl, clock=None):
    doc_kwargs = {"ttl": cache_ttl}
    if clock is not None:
        doc_kwargs["clock"] = clock

    speakers_document = CachedDocument(os.path.join(data_dir, SPEAKERS_FILENAME), DEFAULT_SPEAKERS, **doc_kwargs)
    content_document = CachedDocument(os.path.join(data_dir, CONTENT_FILENAME), DEFAULT_CONTENT, **doc_kwargs)

    return CmsServices(
        speakers_document=speakers_document,
        content_document=content_document,
        speakers=SpeakersRepository(
            speakers_document, sequence_path=os.path.join(data_dir, "speakers.seq.json")
        ),
        content=ContentRepository(content_document),
        users=UserRepository(os.path.join(data_dir, USERS_FILENAME)),
        uploads=ImageUploads(uploads_dir),
    )


def get_services() -> CmsServices:
    return current_app.extensions[EXTENSION_KEY]


def get_speakers_repository() -> SpeakersRepository:
    return get_services().speakers


def get_content_repository() -> ContentRepository:
    return get_services().content


def get_user_repository() -> UserRepository:
    return get_services().users


def get_image_uploads() -> ImageUploads:
    return get_services().uploads
