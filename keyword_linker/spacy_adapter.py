"""
Conversion of spaCy documents into annotated texts.

Sentences are taken from sentence boundaries and chunks from
``doc.noun_chunks`` when the document carries the respective annotations;
tokens get a POS annotation mapped from their Universal Dependencies tag.
"""

from typing import Optional

from spacy.tokens import Doc

from keyword_linker.annotated_text import AnnotatedText
from keyword_linker.nlp import UD_POS, LexicalCategory, PhraseTag, PosTag

NOUN_PHRASE = PhraseTag("NP", LexicalCategory.NOUN)


def annotated_text_from_doc(doc: Doc, language: Optional[str] = None) -> AnnotatedText:
    annotated = AnnotatedText(doc.text, language or doc.lang_)

    if doc.has_annotation("SENT_START"):
        for sent in doc.sents:
            annotated.add_sentence(sent.start_char, sent.end_char)

    # noun_chunks needs a dependency parse
    if doc.has_annotation("DEP"):
        for chunk in doc.noun_chunks:
            annotated.add_chunk(chunk.start_char, chunk.end_char, NOUN_PHRASE)

    for token in doc:
        if token.is_space:
            continue
        annotated_token = annotated.add_token(token.idx, token.idx + len(token.text))
        pos = UD_POS.get(token.pos_)
        if pos is not None:
            annotated_token.add_pos(PosTag(tag=token.tag_ or token.pos_, pos=frozenset({pos})))
    return annotated
