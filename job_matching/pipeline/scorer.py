"""Rule-based compatibility scoring of a job listing against user preferences.

Score range: 0-100 (clamped) for the overall score and every component.
Overall = weighted sum of skills, keywords, experience, and education,
rounded half up. Without preferences every component is neutral.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from job_matching.core.config import ScoringConfig
from job_matching.core.schemas import JobListing, ScoreBreakdown, UserPreferences

logger = logging.getLogger(__name__)


class CompatibilityScorer:
    """Scores (job, preferences) pairs. Pure and stateless beyond its config."""

    def __init__(self, config: ScoringConfig | None = None) -> None:
        self._config = config or ScoringConfig()

    def score(self, job: JobListing, preferences: UserPreferences | None) -> ScoreBreakdown:
        """Compute the weighted compatibility breakdown for one job.

        Args:
            job: The listing to score.
            preferences: The user's profile, or None for neutral defaults.

        Returns:
            ScoreBreakdown with every score in [0, 100].
        """
        neutral = self._config.neutral_score
        skills = keywords = experience = neutral
        # No education signal exists in the data model; kept neutral on purpose.
        education = neutral
        matched_skills: list[str] = []
        missing_skills: list[str] = []
        matched_keywords: list[str] = []
        missing_keywords: list[str] = []

        if preferences is not None:
            job_skills = _normalize([*job.required_skills, *job.preferred_skills])
            matched_skills, missing_skills = _match_terms(job_skills, preferences.skills)
            if job_skills:
                skills = _round_half_up(Decimal(len(matched_skills)) / len(job_skills) * 100)
                # Remote bonus; a job without skills keeps the neutral score.
                if preferences.is_remote_preferred and job.is_remote:
                    skills = min(100, skills + self._config.remote_bonus)

            job_keywords = _normalize(job.keywords)
            matched_keywords, missing_keywords = _match_terms(
                job_keywords, preferences.resume_keywords,
            )
            if job_keywords:
                keywords = _round_half_up(
                    Decimal(len(matched_keywords)) / len(job_keywords) * 100,
                )

            experience = _experience_score(
                preferences.years_experience, job.years_experience_min, neutral,
            )

        weights = self._config.weights
        overall = _round_half_up(
            Decimal(str(weights.skills)) * skills
            + Decimal(str(weights.keywords)) * keywords
            + Decimal(str(weights.experience)) * experience
            + Decimal(str(weights.education)) * education
        )

        cap = self._config.max_missing_terms
        return ScoreBreakdown(
            overall=_clamp(overall),
            skills=_clamp(skills),
            keywords=_clamp(keywords),
            experience=_clamp(experience),
            education=_clamp(education),
            matched_skills=matched_skills,
            missing_skills=missing_skills[:cap],
            matched_keywords=matched_keywords,
            missing_keywords=missing_keywords[:cap],
        )


def _normalize(terms: list[str]) -> list[str]:
    """Lower-case and strip, dropping blanks and duplicates, keeping order."""
    seen: dict[str, None] = {}
    for term in terms:
        t = term.lower().strip()
        if t:
            seen.setdefault(t, None)
    return list(seen)


def _match_terms(job_terms: list[str], user_terms: list[str]) -> tuple[list[str], list[str]]:
    """Split job terms into (matched, missing) against the user's terms.

    A job term matches if any user term contains it or is contained in it.
    """
    user = _normalize(user_terms)
    matched: list[str] = []
    missing: list[str] = []
    for term in job_terms:
        if any(u in term or term in u for u in user):
            matched.append(term)
        else:
            missing.append(term)
    return matched, missing


def _experience_score(user_years: int | None, job_min_years: int | None, neutral: int) -> int:
    if user_years is None or job_min_years is None:
        return neutral
    if user_years >= job_min_years:
        return 100
    return _round_half_up(Decimal(user_years) / job_min_years * 100)


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _clamp(value: int) -> int:
    return max(0, min(100, value))
