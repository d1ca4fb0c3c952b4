# copycheck/rewriter.py
"""Deterministic rule-based rewriting.

``rewrite`` runs a fixed sequence of stages, each assuming what the previous
one established:

1. mask URLs
2. strip banned words (whole word, case-insensitive)
3. append missing required phrases
4. restore URLs
5. cap hashtags
6. hard-trim to ``max_chars`` without breaking URLs or dropping required phrases

Which required phrases can be kept is decided once, up front, from the brand
and the constraints alone. A phrase that cannot coexist with them is never
injected, so no later stage has to take it back out.

Every stage that changes the text reports a human-readable flag. Running
``rewrite`` on its own output changes nothing; the only flags it can raise
again describe standing conditions (an unkeepable phrase, a missing CTA, an
oversized lone URL).
"""
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .schemas import Brand, Constraints
from .textmask import URL_RE, mask_urls, restore_urls

HASHTAG_RE = re.compile(r"#\w+")
CTA_RE = re.compile(r"\b(join|sign up|donate|learn more|read more|take action|share)\b", re.IGNORECASE)
TRAILING_JUNK_RE = re.compile(r"(?:(?:^|\s+)[-…]+)+$")
PHRASE_DELIMITER = " - "
ELLIPSIS = "…"
TRIM_LOOKBACK = 20

@dataclass
class RewriteResult:
    text: str
    flags: List[str] = field(default_factory=list)

@dataclass
class PhrasePlan:
    """Required phrases split into the ones every output must carry and the
    ones that cannot be kept, with the flag to raise when they are absent."""
    keep: List[str] = field(default_factory=list)
    rejected: Dict[str, str] = field(default_factory=dict)

def dedupe(flags: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(flags))

def _clean(s: str) -> str:
    return " ".join(s.split())

def _word_pattern(word: str) -> re.Pattern:
    # a hashtag stripped later must not complete a banned phrase
    body = r"\s+#?".join(re.escape(part) for part in word.split())
    return re.compile(r"(?<!\w)" + body + r"(?!\w)", re.IGNORECASE)

def _contains(text: str, phrase: str) -> bool:
    return phrase.lower() in text.lower()

def collapse_spaces(text: str) -> str:
    text = re.sub(r"[ \t]{2,}", " ", text)
    text = re.sub(r"[ \t]*\n[ \t]*", "\n", text)
    return text.strip()

def contains_banned(text: str, banned_words: Sequence[str]) -> bool:
    """True when ``text`` outside its URLs has a whole-word banned match."""
    masked = mask_urls(text).text
    return any(_word_pattern(w).search(masked) for w in map(_clean, banned_words) if w)

def remove_banned_words(text: str, banned_words: Sequence[str]) -> Tuple[str, List[str]]:
    """Removes whole-word matches until none are left.

    Collapsing whitespace after a removal can join a banned phrase back
    together, so the sweep repeats until a full pass removes nothing.
    """
    words = [w for w in map(_clean, banned_words) if w]
    flags: List[str] = []
    text = collapse_spaces(text)
    changed = True
    while changed:
        changed = False
        for word in words:
            text, n = _word_pattern(word).subn("", text)
            if n:
                flags.append(f'Removed banned word: "{word}"')
                text = collapse_spaces(text)
                changed = True
    return text, dedupe(flags)

def plan_required_phrases(
    phrases: Sequence[str],
    banned_words: Sequence[str],
    max_chars: int,
    max_hashtags: Optional[int] = None,
) -> PhrasePlan:
    """Decides, in order, which required phrases can be guaranteed.

    A phrase is kept unless it contains a banned word, it would push the
    kept phrases past ``max_chars`` on their own, or its ``#`` characters
    would push them past ``max_hashtags``.
    """
    plan = PhrasePlan()
    seen = set()
    tags = 0
    for phrase in map(_clean, phrases):
        if not phrase or phrase.lower() in seen:
            continue
        seen.add(phrase.lower())
        if contains_banned(phrase, banned_words):
            plan.rejected[phrase] = f'Skipped required phrase containing a banned word: "{phrase}"'
        elif len(" ".join(plan.keep + [phrase])) > max_chars:
            plan.rejected[phrase] = f'Could not fit required phrase within maxChars: "{phrase}"'
        elif max_hashtags is not None and tags + phrase.count("#") > max_hashtags:
            plan.rejected[phrase] = f'Could not keep required phrase within maxHashtags: "{phrase}"'
        else:
            plan.keep.append(phrase)
            tags += phrase.count("#")
    return plan

def inject_required_phrases(
    text: str, phrases: Sequence[str], urls: Sequence[str] = ()
) -> Tuple[str, List[str]]:
    """Appends each phrase ``text`` does not already contain.

    ``text`` may be URL-masked, in which case ``urls`` restores it for the
    presence check.
    """
    flags: List[str] = []
    for phrase in map(_clean, phrases):
        if not phrase or _contains(restore_urls(text, list(urls)), phrase):
            continue
        text = f"{text}{PHRASE_DELIMITER}{phrase}" if text else phrase
        flags.append(f'Injected required phrase: "{phrase}"')
    return text, flags

def count_hashtags(text: str) -> int:
    return sum(1 for token in text.split() if HASHTAG_RE.fullmatch(token))

def limit_hashtags(
    text: str, max_hashtags: Optional[int], keep_phrases: Sequence[str] = ()
) -> Tuple[str, List[str]]:
    """Strips the ``#`` from hashtags beyond ``max_hashtags``.

    Hashtags inside the first occurrence of a ``keep_phrases`` entry claim
    their slots first; the rest are kept in order while slots remain.
    """
    if max_hashtags is None:
        return text, []
    spans = []
    for phrase in keep_phrases:
        match = re.search(re.escape(phrase), text, re.IGNORECASE)
        if match:
            spans.append(match.span())
    tags = [m.start() for m in re.finditer(r"\S+", text) if HASHTAG_RE.fullmatch(m.group())]
    protected = {pos for pos in tags if any(s <= pos < e for s, e in spans)}
    slots = max_hashtags - len(protected)
    stripped = set()
    for pos in tags:
        if pos in protected:
            continue
        if slots > 0:
            slots -= 1
        else:
            stripped.add(pos)
    if not stripped:
        return text, []
    out = "".join(ch for i, ch in enumerate(text) if i not in stripped)
    return out, [f"Removed # from {len(stripped)} hashtag(s) over the limit of {max_hashtags}"]

def _cut(text: str, limit: int, url_spans: Sequence[Tuple[int, int]]) -> str:
    """Cuts ``text`` to at most ``limit`` chars without splitting a URL or, when
    a space is close enough, a word."""
    if limit <= 0:
        return ""
    if len(text) <= limit:
        return text
    end = limit
    for start, stop in url_spans:
        if start < end < stop:
            end = start
            break
    head = text[:end]
    if not text[end].isspace() and head and not head[-1].isspace():
        space = max(head.rfind(c) for c in " \n\t")
        if space > 0 and end - space <= TRIM_LOOKBACK:
            head = head[:space]
    return head.rstrip()

def _tidy(head: str, banned_words: Sequence[str]) -> str:
    """Cleans up a cut body: a chopped word can spell a banned one, and a cut
    can strand a delimiter."""
    masked, urls = mask_urls(head)
    masked, _ = remove_banned_words(masked, banned_words)
    head = TRAILING_JUNK_RE.sub("", restore_urls(masked, urls))
    return head if re.search(r"\w", head) else ""

def _join(head: str, tail: str) -> str:
    if not head:
        return tail
    if URL_RE.search(head.split()[-1]):
        return f"{head} {ELLIPSIS} {tail}"
    return f"{head}{ELLIPSIS} {tail}"

def _select(
    urls: List[str], phrases: List[str], max_chars: int
) -> Tuple[List[str], List[str], List[str]]:
    """Picks the protected strings to carry, by total fit: phrases first,
    then URLs. Returns (kept URLs, kept phrases, phrases that cannot fit)."""
    kept_phrases: List[str] = []
    unfit: List[str] = []
    for phrase in phrases:
        if len(" ".join(kept_phrases + [phrase])) <= max_chars:
            kept_phrases.append(phrase)
        else:
            unfit.append(phrase)
    kept_urls: List[str] = []
    for url in urls:
        if any(_contains(p, url) for p in kept_phrases):
            continue
        if len(" ".join(kept_urls + kept_phrases + [url])) <= max_chars:
            kept_urls.append(url)
    if urls and not kept_urls and not kept_phrases:
        kept_urls = [urls[0]]
    return kept_urls, kept_phrases, unfit

def hard_trim(
    text: str,
    max_chars: int,
    required_phrases: Sequence[str] = (),
    banned_words: Sequence[str] = (),
) -> Tuple[str, List[str]]:
    """Trims ``text`` to ``max_chars``.

    URLs and required phrases that the cut drops are reattached at the end,
    with room reserved for them up front. A body shortened to make that room
    ends with an ellipsis. A lone URL longer than ``max_chars`` is kept whole.
    """
    if len(text) <= max_chars:
        return text, []
    if URL_RE.fullmatch(text):
        return text, ["Kept URL intact beyond maxChars"]
    flags = ["Trimmed to maxChars"]
    spans = [m.span() for m in URL_RE.finditer(text)]
    urls = dedupe(text[s:e] for s, e in spans)
    phrases = [p for p in dedupe(map(_clean, required_phrases)) if p and _contains(text, p)]
    kept_urls, kept_phrases, unfit = _select(urls, phrases, max_chars)

    room = max_chars
    while True:
        head = _tidy(_cut(text, room, spans), banned_words)
        missing = [u for u in kept_urls if u not in head] + [p for p in kept_phrases if not _contains(head, p)]
        tail = " ".join(missing)
        if not missing or not head or len(_join(head, tail)) <= max_chars:
            break
        room = min(room - 1, max_chars - len(tail) - len(ELLIPSIS) - 2)

    out = _join(head, tail) if missing else head
    if any(u not in out for u in urls if not any(_contains(p, u) for p in kept_phrases)):
        flags.append("Dropped URL that did not fit within maxChars")
    for phrase in unfit:
        if not _contains(out, phrase):
            flags.append(f'Could not fit required phrase within maxChars: "{phrase}"')
    if len(out) > max_chars:
        flags.append("Kept URL intact beyond maxChars")
    return out, dedupe(flags)

def has_cta(text: str) -> bool:
    return bool(CTA_RE.search(text))

def rewrite(text: str, constraints: Constraints, brand: Brand) -> RewriteResult:
    """Forces ``text`` through every rule stage and reports what changed."""
    plan = plan_required_phrases(
        brand.required_phrases, brand.banned_words, constraints.max_chars, constraints.max_hashtags
    )
    masked, urls = mask_urls(text)
    masked, banned_flags = remove_banned_words(masked, brand.banned_words)
    masked, phrase_flags = inject_required_phrases(masked, plan.keep, urls)
    out = restore_urls(masked, urls)
    out, hashtag_flags = limit_hashtags(out, constraints.max_hashtags, plan.keep)
    out, trim_flags = hard_trim(out, constraints.max_chars, plan.keep, brand.banned_words)
    if trim_flags:
        # the cut can expose a hashtag and the tail can add phrase hashtags
        out, more = limit_hashtags(out, constraints.max_hashtags, plan.keep)
        hashtag_flags += more

    flags = banned_flags + phrase_flags + hashtag_flags + trim_flags
    flags += [flag for phrase, flag in plan.rejected.items() if not _contains(out, phrase)]
    if constraints.require_cta and not has_cta(out):
        flags.append("Missing CTA")
    return RewriteResult(text=out, flags=dedupe(flags))
