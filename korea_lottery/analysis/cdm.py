"""CDM (Compound-Dirichlet-Multinomial) scoring.

Smoothed frequency estimator:

    Pred(j) = M * (alpha_j + n_j) / sum_k(alpha_k + n_k)

- M: categories drawn per event (6 for lotto numbers)
- n_j: observed count of category j
- alpha_j: prior concentration, the mean of a method-of-moments estimate and
  a closed-form MLE-style estimate, plus a small uniform floor so that
  categories never seen still get a non-zero posterior.
"""

import numpy as np
from loguru import logger

from korea_lottery.errors import InsufficientHistory
from korea_lottery.schemas.analysis import CDMScore, FrequencyStat

EULER_MASCHERONI = 0.57721566490153286
DEFAULT_PRIOR_FLOOR = 1.0


def estimate_alpha_mm(frequencies: np.ndarray, total_rounds: int) -> np.ndarray:
    """Method of moments: empirical per-draw rate of each category."""
    return frequencies / total_rounds


def estimate_alpha_mle(frequencies: np.ndarray, total_rounds: int) -> np.ndarray:
    """Closed-form concentration estimate scaled by relative frequencies.

    alpha0 = |n (K-1) gamma / (n * sum f ln f - sum f ln n_k)|

    A near-zero or non-finite denominator falls back to alpha0 = 1.
    """
    k = len(frequencies)
    total_freq = frequencies.sum()
    if total_freq <= 0:
        return np.zeros(k, dtype=np.float64)

    f = frequencies / total_freq
    seen = frequencies > 0
    sum_f_log_f = float(np.sum(f[seen] * np.log(f[seen])))
    sum_f_log_x = float(np.sum(f[seen] * np.log(frequencies[seen])))

    numerator = total_rounds * (k - 1) * EULER_MASCHERONI
    denominator = total_rounds * sum_f_log_f - sum_f_log_x

    if not np.isfinite(denominator) or abs(denominator) < 1e-9:
        logger.debug("[cdm] degenerate alpha0 denominator {}, using 1.0", denominator)
        alpha0 = 1.0
    else:
        alpha0 = abs(numerator / denominator)

    return alpha0 * f


def score_distribution(
    stats: list[FrequencyStat],
    total_rounds: int,
    drawn_per_event: float,
    *,
    prior_floor: float = DEFAULT_PRIOR_FLOOR,
) -> list[CDMScore]:
    """Score every category of one distribution.

    Args:
        stats: FrequencyStat for all categories of the distribution.
        total_rounds: Number of draws the stats were computed from.
        drawn_per_event: M, categories drawn per event.
        prior_floor: Total pseudo-count spread uniformly over categories.

    Returns:
        CDMScore per category in the same order as ``stats``.
    """
    if total_rounds < 1:
        raise InsufficientHistory(1, total_rounds)
    if not stats:
        return []

    frequencies = np.array([s.frequency for s in stats], dtype=np.float64)
    k = len(frequencies)

    alpha_mm = estimate_alpha_mm(frequencies, total_rounds)
    alpha_mle = estimate_alpha_mle(frequencies, total_rounds)
    alpha = (alpha_mm + alpha_mle) / 2 + prior_floor / k

    total_alpha_n = float(np.sum(alpha + frequencies))
    posterior = (alpha + frequencies) / total_alpha_n

    return [
        CDMScore(
            category=s.category,
            position=s.position,
            frequency=s.frequency,
            alpha=float(alpha[i]),
            posterior=float(posterior[i]),
            predicted_count=float(drawn_per_event * posterior[i]),
        )
        for i, s in enumerate(stats)
    ]


def alpha_sum(scores: list[CDMScore]) -> float:
    return float(sum(s.alpha for s in scores))


def sort_scores(scores: list[CDMScore]) -> list[CDMScore]:
    """Descending by posterior; ties broken by category ascending."""
    return sorted(scores, key=lambda s: (-s.posterior, s.category))
