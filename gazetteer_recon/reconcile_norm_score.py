from collections import Counter
import math
import re

#weights of the final score, the type bonus is constant for a single-type gazetteer
SIMILARITY_WEIGHT = 0.6
PREFIX_BONUS = 0.30
CONTAINS_BONUS = 0.15
TYPE_BONUS = 0.20

MAX_SCORE = 100

_WHITESPACE = re.compile(r"\s+")

def normalise_name(s: str) -> str:
    if not s:
        return ""
    return s.lower()

def bigrams(s: str) -> Counter:
    return Counter(s[i:i + 2] for i in range(len(s) - 1))

#dice coefficient over adjacent character pairs, whitespace ignored
def bigram_similarity(first: str, second: str) -> float:
    first = _WHITESPACE.sub("", first)
    second = _WHITESPACE.sub("", second)

    if first == second:
        return 1.0 if first else 0.0
    if len(first) < 2 or len(second) < 2:
        return 0.0

    overlap = sum((bigrams(first) & bigrams(second)).values())
    return 2.0 * overlap / (len(first) - 1 + len(second) - 1)

def prefix_bonus(query: str, name: str) -> float:
    if name.startswith(query):
        return PREFIX_BONUS
    if query in name:
        return CONTAINS_BONUS
    return 0.0

#confidence 0-100 that the entity name is what the query refers to
def name_similarity(query: str, candidate: str) -> int:
    qn = normalise_name(query)
    cn = normalise_name(candidate)

    if qn and qn == cn:
        return MAX_SCORE

    raw = bigram_similarity(qn, cn) * SIMILARITY_WEIGHT + TYPE_BONUS
    if qn:
        raw += prefix_bonus(qn, cn)

    #halves round up; prefix plus near-identical names can pass 100
    return min(MAX_SCORE, int(math.floor(raw * 100 + 0.5)))
