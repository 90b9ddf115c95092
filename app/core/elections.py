"""
Ranked-choice tallies for ranked multi-select fields.

Each ballot is one respondent's preference order, best first. Ties for the
winner go to the candidate encountered first (option order for plurality
and Borda), not to any alphabetical or secondary key.
"""
from __future__ import annotations

from app.schemas.analytics import (
    BordaResult,
    BordaScore,
    ElectionResult,
    IrvResult,
    IrvRound,
    OptionCount,
    PluralityResult,
)

BORDA_POINTS = [5, 4, 3, 2, 1]

NO_WINNER = "-"


def plurality(options: list[str], ballots: list[list[str]]) -> PluralityResult:
    counts = [
        OptionCount(option=option, count=sum(1 for b in ballots if b and b[0] == option))
        for option in options
    ]

    winner = OptionCount(option=NO_WINNER, count=0)
    for current in counts:
        if current.count > winner.count:
            winner = current
    return PluralityResult(counts=counts, winner=winner)


def instant_runoff(ballots: list[list[str]]) -> IrvResult:
    """
    Instant-runoff with simultaneous elimination: every candidate tied at the
    round's minimum is removed at once. A round wins outright only on a strict
    majority (count > total / 2).
    """
    active: list[str] = list(dict.fromkeys(c for ballot in ballots for c in ballot))
    current = [list(ballot) for ballot in ballots]
    rounds: list[IrvRound] = []

    while len(active) > 1:
        counts = {candidate: 0 for candidate in active}
        for ballot in current:
            if ballot:
                counts[ballot[0]] += 1

        total = sum(counts.values())
        leader = max(active, key=lambda c: counts[c])
        if total > 0 and counts[leader] > total / 2:
            rounds.append(IrvRound(counts=counts, eliminated=[]))
            return IrvResult(winner=leader, rounds=rounds)

        lowest = min(counts.values())
        eliminated = [c for c in active if counts[c] == lowest]
        rounds.append(IrvRound(counts=counts, eliminated=eliminated))

        active = [c for c in active if c not in eliminated]
        current = [[c for c in ballot if c in active] for ballot in current]

    return IrvResult(winner=active[0] if active else NO_WINNER, rounds=rounds)


def borda(options: list[str], ballots: list[list[str]]) -> BordaResult:
    """5/4/3/2/1 points for places 1-5; later places score nothing."""
    scores = []
    for option in options:
        score = 0
        for ballot in ballots:
            for place, candidate in enumerate(ballot[: len(BORDA_POINTS)]):
                if candidate == option:
                    score += BORDA_POINTS[place]
                    break
        scores.append(BordaScore(option=option, score=score))

    winner = BordaScore(option=NO_WINNER, score=0)
    for current in scores:
        if current.score > winner.score:
            winner = current
    return BordaResult(scores=scores, winner=winner)


def clean_ballots(options: list[str], raw_values: list) -> list[list[str]]:
    """
    Keep list answers only, restricted to known options, each option counted
    once per ballot (first placement wins).
    """
    known = set(options)
    ballots = []
    for value in raw_values:
        if not isinstance(value, list):
            continue
        ballot = [c for c in dict.fromkeys(v for v in value if isinstance(v, str)) if c in known]
        ballots.append(ballot)
    return ballots


def tally_election(field_key: str, label: str, options: list[str], ballots: list[list[str]]) -> ElectionResult:
    return ElectionResult(
        field_key=field_key,
        label=label,
        ballots=len(ballots),
        plurality=plurality(options, ballots),
        irv=instant_runoff(ballots),
        borda=borda(options, ballots),
    )
