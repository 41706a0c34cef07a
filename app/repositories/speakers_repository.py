"""
Repository for the speakers collection (speakers.json)

Ids are assigned as one past the highest id ever handed out. The highest
assigned id is kept next to the collection (speakers.seq.json) so deleting
the newest speaker does not make its id available again.
"""

import copy
import os

import structlog

from exceptions import NotFoundException, ValidationException
from json_store import read_json, write_json

logger = structlog.get_logger("main")


def next_speaker_id(speakers, last_assigned=0):
    """1 for a fresh collection, otherwise one past the highest id seen"""
    ids = [s["id"] for s in speakers if isinstance(s.get("id"), int)]
    return max(ids + [last_assigned, 0]) + 1


def merge_speaker(existing, fields, speaker_id):
    """Shallow merge of fields over existing, with the id applied last"""
    merged = dict(existing)
    merged.update(fields)
    merged["id"] = speaker_id
    return merged


class SpeakersRepository:
    def __init__(self, document, sequence_path=None):
        self.document = document
        self.sequence_path = sequence_path

    def _require_fields(self, fields):
        if not isinstance(fields, dict):
            raise ValidationException("Speaker must be a JSON object")

    def _last_assigned(self):
        if not self.sequence_path or not os.path.exists(self.sequence_path):
            return 0
        return read_json(self.sequence_path).get("lastId", 0)

    def _store_last_assigned(self, speaker_id):
        if self.sequence_path:
            write_json(self.sequence_path, {"lastId": speaker_id})

    def list(self):
        return self.document.get()

    def get(self, speaker_id):
        for speaker in self.document.get():
            if speaker.get("id") == speaker_id:
                return speaker
        raise NotFoundException("Speaker not found")

    def create(self, fields):
        self._require_fields(fields)
        with self.document.lock:
            speakers = copy.deepcopy(self.document.get())
            speaker_id = next_speaker_id(speakers, self._last_assigned())
            speaker = merge_speaker({}, fields, speaker_id)
            speakers.append(speaker)
            self._store_last_assigned(speaker_id)
            self.document.write(speakers)

        logger.info(f"Created speaker {speaker_id}")
        return speaker

    def update(self, speaker_id, fields):
        self._require_fields(fields)
        with self.document.lock:
            speakers = copy.deepcopy(self.document.get())
            for index, speaker in enumerate(speakers):
                if speaker.get("id") == speaker_id:
                    break
            else:
                raise NotFoundException("Speaker not found")

            speakers[index] = merge_speaker(speaker, fields, speaker["id"])
            self.document.write(speakers)

        logger.info(f"Updated speaker {speaker_id}")
        return speakers[index]

    def delete(self, speaker_id):
        with self.document.lock:
            speakers = self.document.get()
            remaining = [s for s in speakers if s.get("id") != speaker_id]
            if len(remaining) == len(speakers):
                raise NotFoundException("Not found")
            self.document.write(remaining)

        logger.info(f"Deleted speaker {speaker_id}")
