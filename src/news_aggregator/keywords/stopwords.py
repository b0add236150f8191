"""Function words excluded from keyword sets."""

from __future__ import annotations

_RUSSIAN = frozenset({
    "а", "без", "более", "бы", "быть", "в", "вам", "вас", "весь", "во", "вот",
    "все", "всего", "вы", "где", "да", "даже", "для", "до", "его", "ее", "её",
    "если", "есть", "еще", "ещё", "же", "за", "здесь", "и", "из", "или", "им",
    "их", "к", "как", "когда", "кто", "ли", "либо", "между", "мы", "на", "над",
    "наш", "не", "него", "нее", "нет", "ни", "но", "ну", "о", "об", "он",
    "она", "они", "оно", "от", "по", "под", "после", "при", "про", "с", "свой",
    "со", "так", "также", "там", "то", "тот", "только", "тут", "у", "уже",
    "чем", "через", "что", "чтобы", "это", "этот", "я",
})

_ENGLISH = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "been", "but", "by", "for",
    "from", "has", "have", "he", "her", "his", "in", "into", "is", "it", "its",
    "not", "of", "on", "or", "she", "that", "the", "their", "they", "this",
    "to", "was", "we", "were", "which", "who", "will", "with", "you",
})

STOP_WORDS = _RUSSIAN | _ENGLISH


def is_stop_word(word: str) -> bool:
    return word in STOP_WORDS
