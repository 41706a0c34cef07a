"""
Repositories package

Each repository encapsulates the reads and writes of one JSON document:
- speakers_repository.py
- content_repository.py
- user_repository.py

Usage:
    from repositories.speakers_repository import SpeakersRepository
    speakers = SpeakersRepository(cached_document).list()
"""
