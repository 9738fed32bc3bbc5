"""Test doubles for the ingestion pipeline."""
from typing import List

from apps.intelligence.services import LabelInferenceInterface


class ScriptedLabelClient(LabelInferenceInterface):
    """
    Label client whose answers are scripted per call.

    Each entry of `script` is either a list of labels or an exception to
    raise; the last entry repeats once the script is exhausted.
    """

    def __init__(self, *script):
        self.script = list(script) or [[]]
        self.calls = []

    def detect_labels(self, container: str, key: str) -> List[str]:
        self.calls.append((container, key))
        answer = self.script[min(len(self.calls), len(self.script)) - 1]
        if isinstance(answer, Exception):
            raise answer
        return list(answer)


class KeyedLabelClient(LabelInferenceInterface):
    """Answers with the labels registered for each key."""

    def __init__(self, labels_by_key):
        self.labels_by_key = labels_by_key
        self.calls = []

    def detect_labels(self, container: str, key: str) -> List[str]:
        self.calls.append((container, key))
        return list(self.labels_by_key[key])
