"""Rule-based auto-responder for candidate profiles.

Scoring (each 0-1):
  skill        = min(len(skills) / 5, 1)
  availability = 1.0 if immediately available, else 0.7
  location     = 0.8 if a location is given, else 0.5
  overall      = min(mean(skill, availability, location) + 0.2 if verified, 1)

Template selection:
  overall > 0.8 and immediate -> urgent
  overall > 0.6               -> standard
  otherwise                   -> follow-up
"""

import logging
import threading
import uuid
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from relief_campaigns.core.config import ResponseConfig
from relief_campaigns.core.schemas import (
    AutoResponse,
    JobPosting,
    ProfileScores,
    ResponseProfile,
    ResponseTemplate,
    ResponseTrigger,
)
from relief_campaigns.responses.templates import (
    FOLLOW_UP_TEMPLATE_ID,
    STANDARD_TEMPLATE_ID,
    URGENT_TEMPLATE_ID,
    default_templates,
)

logger = logging.getLogger(__name__)

SKILL_SATURATION = 5
VERIFICATION_BONUS = 0.2


def score_profile(profile: ResponseProfile) -> ProfileScores:
    """Compute heuristic fit scores for a profile. Pure function of the profile."""
    skill_score = min(len(profile.skills) / SKILL_SATURATION, 1.0)
    availability_score = 1.0 if profile.availability.immediate else 0.7
    location_score = 0.8 if profile.location else 0.5
    bonus = VERIFICATION_BONUS if profile.verified else 0.0

    overall = (skill_score + availability_score + location_score) / 3 + bonus
    return ProfileScores(
        skill_score=skill_score,
        availability_score=availability_score,
        location_score=location_score,
        overall_score=min(overall, 1.0),
    )


def trigger_matches(
    trigger: ResponseTrigger,
    profile: ResponseProfile,
    scores: ProfileScores,
) -> bool:
    """Return True if a single trigger is satisfied. Unknown conditions never match."""
    value = trigger.value
    if trigger.condition == "skill_match":
        return _is_number(value) and scores.skill_score >= value
    if trigger.condition == "location_match":
        return bool(profile.location) and value is True
    if trigger.condition == "availability":
        return profile.availability.immediate and value == "immediate"
    if trigger.condition == "verification_status":
        return isinstance(value, bool) and profile.verified is value
    return False


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ResponseClassifier:
    """Scores profiles, picks a template, and renders auto-responses.

    Holds the template registry; seeded with the built-in templates unless
    ``templates`` is given.
    """

    def __init__(
        self,
        templates: list[ResponseTemplate] | None = None,
        config: ResponseConfig | None = None,
    ) -> None:
        seed = templates if templates is not None else default_templates()
        self._templates: list[ResponseTemplate] = [t.model_copy(deep=True) for t in seed]
        self._fallbacks = {t.id: t for t in default_templates()}
        self._config = config or ResponseConfig()
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Scoring and selection
    # ------------------------------------------------------------------

    def score_profile(self, profile: ResponseProfile) -> ProfileScores:
        return score_profile(profile)

    def select_template(self, profile: ResponseProfile) -> ResponseTemplate:
        """Pick the urgent, standard, or follow-up template for a profile."""
        scores = score_profile(profile)
        if scores.overall_score > 0.8 and profile.availability.immediate:
            template_id = URGENT_TEMPLATE_ID
        elif scores.overall_score > 0.6:
            template_id = STANDARD_TEMPLATE_ID
        else:
            template_id = FOLLOW_UP_TEMPLATE_ID

        template = self.get_template(template_id)
        if template is None:
            # Deleted from the registry: selection still has to return something.
            template = self._fallbacks[template_id].model_copy(deep=True)
        return template

    def should_auto_respond(self, profile: ResponseProfile, template: ResponseTemplate) -> bool:
        """Return True on the first satisfied trigger, in list order."""
        scores = score_profile(profile)
        for trigger in template.triggers:
            if trigger_matches(trigger, profile, scores):
                logger.debug(
                    "Trigger %s matched for profile %s (%s)",
                    trigger.condition, profile.id, trigger.action,
                )
                return True
        return False

    # ------------------------------------------------------------------
    # Response generation
    # ------------------------------------------------------------------

    def generate_response(
        self,
        profile: ResponseProfile,
        campaign_id: str,
        job_details: JobPosting | Mapping[str, Any] | None = None,
    ) -> AutoResponse:
        """Render a pending auto-response for ``profile``.

        Missing job details fall back to the configured defaults; a declared
        variable with no value renders as ``[variable]``.
        """
        job = _coerce_job(job_details)
        template = self.select_template(profile)
        replacements = self._replacements(profile, job)

        response = AutoResponse(
            id=f"response_{uuid.uuid4().hex}_{profile.id}",
            campaign_id=campaign_id,
            respondent_profile=profile,
            subject=render(template.subject, template.variables, replacements),
            message=render(template.body, template.variables, replacements),
            timestamp=datetime.now(),
            status="pending",
            template=template,
        )
        logger.info(
            "Generated %s response %s for profile %s (campaign %s)",
            template.id, response.id, profile.id, campaign_id,
        )
        return response

    def _replacements(self, profile: ResponseProfile, job: JobPosting) -> dict[str, str]:
        cfg = self._config

        compensation = cfg.compensation
        if job.compensation is not None and job.compensation.amount is not None:
            c = job.compensation
            compensation = f"{c.amount:g} {c.currency} per {c.type}"

        contact_info = cfg.contact_info
        if job.contact_info is not None:
            contact_info = f"{job.contact_info.name} - {job.contact_info.email}"

        return {
            "name": profile.name,
            "skills": ", ".join(profile.skills),
            "location": profile.location,
            "required_skills": ", ".join(job.requirements) or cfg.required_skills,
            "duration": job.estimated_duration or cfg.duration,
            "compensation": compensation,
            "contact_info": contact_info,
            "job_title": job.title or cfg.job_title,
            "previous_experience": ", ".join(profile.previous_experience) or cfg.previous_experience,
            "available_positions": (
                job.category.primary if job.category and job.category.primary
                else cfg.available_positions
            ),
        }

    # ------------------------------------------------------------------
    # Template registry
    # ------------------------------------------------------------------

    def list_templates(self) -> list[ResponseTemplate]:
        with self._lock:
            return [t.model_copy(deep=True) for t in self._templates]

    def get_template(self, template_id: str) -> ResponseTemplate | None:
        with self._lock:
            for t in self._templates:
                if t.id == template_id:
                    return t.model_copy(deep=True)
        return None

    def create_template(self, data: Mapping[str, Any]) -> ResponseTemplate:
        """Add a template under a freshly generated id."""
        template = ResponseTemplate.model_validate(
            {**data, "id": f"template_{uuid.uuid4().hex}"},
        )
        with self._lock:
            self._templates.append(template)
        logger.info("Created template %s (%s)", template.id, template.name)
        return template.model_copy(deep=True)

    def update_template(
        self,
        template_id: str,
        updates: Mapping[str, Any],
    ) -> ResponseTemplate | None:
        """Shallow-merge ``updates`` into a template. The id cannot change."""
        with self._lock:
            for index, current in enumerate(self._templates):
                if current.id == template_id:
                    merged = ResponseTemplate.model_validate(
                        {**current.model_dump(), **updates, "id": template_id},
                    )
                    self._templates[index] = merged
                    logger.info("Updated template %s", template_id)
                    return merged.model_copy(deep=True)
        logger.debug("Update for unknown template %s ignored", template_id)
        return None

    def delete_template(self, template_id: str) -> bool:
        """Remove a template. Returns True if one was actually removed."""
        with self._lock:
            before = len(self._templates)
            self._templates = [t for t in self._templates if t.id != template_id]
            removed = len(self._templates) < before
        if removed:
            logger.info("Deleted template %s", template_id)
        return removed


def render(text: str, variables: list[str], replacements: Mapping[str, str]) -> str:
    """Substitute every ``{{variable}}`` listed in ``variables``.

    Undeclared placeholders are left untouched.
    """
    for variable in variables:
        value = replacements.get(variable) or f"[{variable}]"
        text = text.replace("{{" + variable + "}}", value)
    return text


def _coerce_job(job_details: JobPosting | Mapping[str, Any] | None) -> JobPosting:
    if job_details is None:
        return JobPosting()
    if isinstance(job_details, JobPosting):
        return job_details
    return JobPosting.model_validate(dict(job_details))
