"""Entity merger — fuse adjacent same-category words into one phrase.

"Dr." + "Sarah" + "Mitchell" arrive as three words; they leave as one
person entity covering "Dr. Sarah Mitchell".  The fused value is sliced
from the original text so punctuation between words is kept verbatim.
"""

from __future__ import annotations

from .types import MergedEntity, Word

DEFAULT_MAX_GAP = 2
NONE = "none"

# Raw model label → internal category
LABEL_CATEGORIES: dict[str, str] = {
    # Piiranha-style token labels
    "I-ACCOUNTNUM": "account",
    "I-BUILDINGNUM": "building",
    "I-CITY": "location",
    "I-CREDITCARDNUMBER": "creditCard",
    "I-DATEOFBIRTH": "dateOfBirth",
    "I-DRIVERLICENSENUM": "license",
    "I-EMAIL": "email",
    "I-GIVENNAME": "person",
    "I-IDCARDNUM": "idCard",
    "I-PASSWORD": "password",
    "I-SOCIALNUM": "ssn",
    "I-STREET": "address",
    "I-SURNAME": "person",
    "I-TAXNUM": "taxId",
    "I-TELEPHONENUM": "phone",
    "I-USERNAME": "username",
    "I-ZIPCODE": "zipcode",
    "O": NONE,
    # CoNLL-style BERT-NER labels
    "B-PER": "person",
    "I-PER": "person",
    "B-LOC": "location",
    "I-LOC": "location",
    "B-ORG": "organization",
    "I-ORG": "organization",
    "B-MISC": "misc",
    "I-MISC": "misc",
    # Presidio entity types
    "PERSON": "person",
    "LOCATION": "location",
    "ORGANIZATION": "organization",
    "EMAIL_ADDRESS": "email",
    "PHONE_NUMBER": "phone",
    "US_SSN": "ssn",
    "IP_ADDRESS": "ip",
    "DATE_TIME": "date",
    "NRP": "nrp",
}


def map_label(label: str) -> str:
    """Category for a raw model label; unknown labels lose their B-/I- prefix."""
    if label in LABEL_CATEGORIES:
        return LABEL_CATEGORIES[label]
    if label[:2] in ("B-", "I-"):
        label = label[2:]
    return label.lower()


def _unique(words: list[Word]) -> list[Word]:
    """Collapse words reported twice by overlapping chunks, keep the higher score."""
    best: dict[tuple[int, int, str], Word] = {}
    for w in words:
        key = (w.start, w.end, map_label(w.label))
        if key not in best or w.score > best[key].score:
            best[key] = w
    return sorted(best.values(), key=lambda w: (w.start, w.end))


def merge_words(
    words: list[Word],
    text: str,
    max_gap: int = DEFAULT_MAX_GAP,
) -> list[MergedEntity]:
    """Fuse consecutive same-category words separated by at most max_gap chars.

    Words may come from several chunks in any order; they are re-sorted by
    offset first.  A merged entity's score is the weakest of its words.
    """
    entities: list[MergedEntity] = []
    current: MergedEntity | None = None

    def emit(entity: MergedEntity | None) -> None:
        if entity is None or entity.start is None or entity.end is None:
            return
        if not entity.value.strip():
            return
        entities.append(entity)

    for word in _unique(words):
        category = map_label(word.label)
        if category == NONE:
            emit(current)
            current = None
            continue

        if current is not None and category == current.category and current.end is not None:
            gap = word.start - current.end
            if word.end <= current.end:
                # Fragment of a word cut at a chunk boundary, already covered
                continue
            if gap <= max_gap:
                current.value = text[current.start:word.end]
                current.end = word.end
                current.score = min(current.score, word.score)
                continue

        emit(current)
        current = MergedEntity(
            category=category,
            label=word.label,
            value=text[word.start:word.end],
            score=word.score,
            start=word.start,
            end=word.end,
        )

    emit(current)
    return entities
