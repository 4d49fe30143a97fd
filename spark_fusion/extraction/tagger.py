"""
Part-of-speech and named-entity tagging

Tagger is the seam between concept extraction and an NLP toolkit.
HeuristicTagger is a dependency-free rule-based default; SpacyTagger
wraps a spaCy pipeline (install the `nlp` extra and a model such as
en_core_web_sm).
"""

import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional

from loguru import logger
from pydantic import BaseModel


class LexicalClass(str, Enum):
    NOUN = "noun"
    VERB = "verb"
    ADJECTIVE = "adjective"
    ADVERB = "adverb"
    PRONOUN = "pronoun"
    DETERMINER = "determiner"
    PREPOSITION = "preposition"
    CONJUNCTION = "conjunction"
    NUMBER = "number"
    OTHER = "other"


class NameTag(str, Enum):
    PERSON = "person"
    ORGANIZATION = "organization"
    PLACE = "place"
    OTHER = "other"


class TaggedToken(BaseModel):
    """One word with its character offsets in the source text"""

    text: str
    start: int
    end: int
    lexical_class: LexicalClass = LexicalClass.OTHER
    name_tag: Optional[NameTag] = None
    lemma: Optional[str] = None


class NameSpan(BaseModel):
    """A named entity, possibly several words long"""

    text: str
    start: int
    end: int
    tag: NameTag


class Tagger(ABC):
    """Tokenizes text and tags lexical class and named entities"""

    @abstractmethod
    def tag(self, text: str) -> List[TaggedToken]:
        pass

    def lemmatize(self, word: str) -> str:
        return word.lower()

    def name_spans(self, text: str) -> List[NameSpan]:
        """
        Merge consecutive tokens carrying the same name tag into spans.

        Tokens must be separated by whitespace only to be merged.
        """
        spans: List[NameSpan] = []
        for token in self.tag(text):
            if token.name_tag is None:
                continue
            last = spans[-1] if spans else None
            if (
                last is not None
                and last.tag == token.name_tag
                and text[last.end:token.start].isspace()
            ):
                spans[-1] = NameSpan(
                    text=text[last.start:token.end],
                    start=last.start,
                    end=token.end,
                    tag=last.tag,
                )
            else:
                spans.append(
                    NameSpan(text=token.text, start=token.start, end=token.end, tag=token.name_tag)
                )
        return spans


# ========== RULE-BASED ==========

_WORD_RE = re.compile(r"[A-Za-z0-9]+(?:['\-][A-Za-z0-9]+)*")
_SENTENCE_END_RE = re.compile(r"[.!?\n]\s*$")

_DETERMINERS = {"the", "a", "an", "this", "that", "these", "those", "each", "every", "some", "any", "no"}
_PRONOUNS = {
    "i", "me", "my", "mine", "you", "your", "yours", "he", "him", "his", "she", "her", "hers",
    "it", "its", "we", "us", "our", "ours", "they", "them", "their", "theirs", "who", "what",
}
_PREPOSITIONS = {
    "in", "on", "at", "to", "for", "of", "with", "by", "from", "about", "into", "over",
    "under", "between", "through", "during", "after", "before", "near", "across",
}
_CONJUNCTIONS = {"and", "or", "but", "nor", "so", "yet", "because", "although", "while", "if"}
_AUXILIARIES = {
    "is", "are", "was", "were", "be", "been", "being", "have", "has", "had", "do", "does",
    "did", "will", "would", "could", "should", "can", "may", "might", "must", "shall",
}

_ADJECTIVE_SUFFIXES = ("ous", "ful", "ive", "able", "ible", "ical", "less", "ish")
_VERB_SUFFIXES = ("ize", "ise", "ify", "ate")

_TITLES = {"mr", "mrs", "ms", "dr", "prof", "sir"}
_ORG_SUFFIXES = {
    "inc", "corp", "corporation", "ltd", "llc", "company", "university", "institute",
    "labs", "foundation", "group",
}
_PLACE_PREPOSITIONS = {"in", "at", "from", "near"}


class HeuristicTagger(Tagger):
    """
    Rule-based tagger for when no NLP model is installed.

    Lexical class comes from closed word lists and suffixes, with open
    class words defaulting to noun. A capitalized word is a name unless
    it starts a sentence; all-caps acronyms count at any position.
    Name categories:
    - organization: acronym of 3+ letters, or a span ending in a company/institution word
    - person: preceded by a title (Dr, Mrs...) or a two-word span
    - place: preceded by in/at/from/near
    - other: anything else
    """

    def tag(self, text: str) -> List[TaggedToken]:
        matches = list(_WORD_RE.finditer(text))
        tokens: List[TaggedToken] = []

        for i, match in enumerate(matches):
            word = match.group()
            # "Dr. Smith" does not start a sentence
            sentence_start = i == 0 or (
                matches[i - 1].group().lower() not in _TITLES
                and bool(_SENTENCE_END_RE.search(text[matches[i - 1].end():match.start()]))
            )
            tokens.append(
                TaggedToken(
                    text=word,
                    start=match.start(),
                    end=match.end(),
                    lexical_class=self._lexical_class(word),
                    name_tag=self._is_name(word, sentence_start),
                    lemma=self.lemmatize(word),
                )
            )

        self._categorize_names(tokens)
        return tokens

    def _lexical_class(self, word: str) -> LexicalClass:
        lower = word.lower()
        if lower.isdigit():
            return LexicalClass.NUMBER
        if lower in _DETERMINERS:
            return LexicalClass.DETERMINER
        if lower in _PRONOUNS:
            return LexicalClass.PRONOUN
        if lower in _PREPOSITIONS:
            return LexicalClass.PREPOSITION
        if lower in _CONJUNCTIONS:
            return LexicalClass.CONJUNCTION
        if lower in _AUXILIARIES:
            return LexicalClass.VERB
        if lower.endswith("ly") and len(lower) > 4:
            return LexicalClass.ADVERB
        if lower.endswith(_ADJECTIVE_SUFFIXES):
            return LexicalClass.ADJECTIVE
        if lower.endswith(_VERB_SUFFIXES):
            return LexicalClass.VERB
        return LexicalClass.NOUN

    def _is_name(self, word: str, sentence_start: bool) -> Optional[NameTag]:
        if word.isupper() and word.isalpha() and len(word) > 1:
            return NameTag.ORGANIZATION if len(word) > 2 else NameTag.OTHER
        if not word[0].isupper() or sentence_start:
            return None
        if self._lexical_class(word) not in (LexicalClass.NOUN, LexicalClass.ADJECTIVE):
            return None
        if word.lower() in _TITLES:
            return None
        return NameTag.OTHER

    def _categorize_names(self, tokens: List[TaggedToken]) -> None:
        """Refine OTHER name tags in place, one run of adjacent names at a time"""
        i = 0
        while i < len(tokens):
            if tokens[i].name_tag != NameTag.OTHER:
                i += 1
                continue

            j = i
            while j + 1 < len(tokens) and tokens[j + 1].name_tag == NameTag.OTHER:
                j += 1
            run = tokens[i:j + 1]
            previous = tokens[i - 1].text.lower() if i > 0 else ""

            if run[-1].text.lower() in _ORG_SUFFIXES:
                tag = NameTag.ORGANIZATION
            elif previous in _TITLES:
                tag = NameTag.PERSON
            elif previous in _PLACE_PREPOSITIONS:
                tag = NameTag.PLACE
            elif len(run) == 2:
                tag = NameTag.PERSON
            else:
                tag = NameTag.OTHER

            for token in run:
                token.name_tag = tag
            i = j + 1


# ========== SPACY ==========

_SPACY_POS = {
    "NOUN": LexicalClass.NOUN,
    "PROPN": LexicalClass.NOUN,
    "VERB": LexicalClass.VERB,
    "AUX": LexicalClass.VERB,
    "ADJ": LexicalClass.ADJECTIVE,
    "ADV": LexicalClass.ADVERB,
    "PRON": LexicalClass.PRONOUN,
    "DET": LexicalClass.DETERMINER,
    "ADP": LexicalClass.PREPOSITION,
    "CCONJ": LexicalClass.CONJUNCTION,
    "SCONJ": LexicalClass.CONJUNCTION,
    "NUM": LexicalClass.NUMBER,
}

_SPACY_ENTS = {
    "PERSON": NameTag.PERSON,
    "ORG": NameTag.ORGANIZATION,
    "GPE": NameTag.PLACE,
    "LOC": NameTag.PLACE,
    "FAC": NameTag.PLACE,
}


class SpacyTagger(Tagger):
    """Tagger backed by a spaCy pipeline, loaded on first use"""

    def __init__(self, model_name: str = "en_core_web_sm") -> None:
        self.model_name = model_name
        self._nlp = None

    def _load_pipeline(self):
        import spacy

        return spacy.load(self.model_name)

    def _get_nlp(self):
        if self._nlp is None:
            self._nlp = self._load_pipeline()
            logger.info(f"Loaded spaCy pipeline: {self.model_name}")
        return self._nlp

    def tag(self, text: str) -> List[TaggedToken]:
        doc = self._get_nlp()(text)
        tokens = []
        for token in doc:
            if token.is_space or token.is_punct:
                continue
            name_tag = None
            if token.ent_type_:
                name_tag = _SPACY_ENTS.get(token.ent_type_, NameTag.OTHER)
            tokens.append(
                TaggedToken(
                    text=token.text,
                    start=token.idx,
                    end=token.idx + len(token.text),
                    lexical_class=_SPACY_POS.get(token.pos_, LexicalClass.OTHER),
                    name_tag=name_tag,
                    lemma=token.lemma_.lower(),
                )
            )
        return tokens

    def lemmatize(self, word: str) -> str:
        doc = self._get_nlp()(word)
        return doc[0].lemma_.lower() if len(doc) else word.lower()

    def name_spans(self, text: str) -> List[NameSpan]:
        doc = self._get_nlp()(text)
        return [
            NameSpan(
                text=ent.text,
                start=ent.start_char,
                end=ent.end_char,
                tag=_SPACY_ENTS.get(ent.label_, NameTag.OTHER),
            )
            for ent in doc.ents
        ]
