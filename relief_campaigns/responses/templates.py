"""Built-in auto-response templates.

Placeholders use ``{{variable}}`` syntax and are listed in ``variables``.
"""

from relief_campaigns.core.schemas import ResponseTemplate, ResponseTrigger

URGENT_TEMPLATE_ID = "urgent_response"
STANDARD_TEMPLATE_ID = "standard_response"
FOLLOW_UP_TEMPLATE_ID = "follow_up"

_URGENT_BODY = """Dear {{name}},

Thank you for expressing interest in our disaster relief efforts. Based on your profile showing skills in {{skills}}, you're exactly what we need for our {{location}} operations.

IMMEDIATE NEED:
- Location: {{location}}
- Skills Required: {{required_skills}}
- Duration: {{duration}}
- Compensation: {{compensation}}

Due to the urgent nature of this situation, we can fast-track your application. Please reply within 2 hours if you're available to start immediately.

Contact Information:
{{contact_info}}

Thank you for your willingness to help during this critical time.

Best regards,
Disaster Relief Coordination Team"""

_STANDARD_BODY = """Hello {{name}},

We've received your application for {{job_title}} in our disaster relief operations. Your background in {{skills}} looks promising for our needs.

Next Steps:
1. Application review (24-48 hours)
2. Skills verification
3. Interview scheduling
4. Background check
5. Assignment coordination

We'll be in touch soon with updates on your application status.

If you have any immediate questions, please contact:
{{contact_info}}

Thank you for your interest in helping our community recover.

Sincerely,
HR Team"""

_FOLLOW_UP_BODY = """Hi {{name}},

We wanted to follow up on your application for disaster relief work. We noticed you have experience in {{previous_experience}} which could be valuable.

Current opportunities that might interest you:
- {{available_positions}}

If you're still interested and available, please let us know:
1. Your current availability
2. Preferred work locations
3. Any additional skills or certifications

We're committed to matching skilled individuals with urgent community needs.

Best regards,
Coordination Team"""


def default_templates() -> list[ResponseTemplate]:
    """Return fresh copies of the three built-in templates, urgent first."""
    return [
        ResponseTemplate(
            id=URGENT_TEMPLATE_ID,
            name="Urgent Disaster Response",
            subject="URGENT: Your Skills Needed for Disaster Relief",
            body=_URGENT_BODY,
            variables=[
                "name", "skills", "location", "required_skills",
                "duration", "compensation", "contact_info",
            ],
            triggers=[
                ResponseTrigger(condition="skill_match", value=0.8),
                ResponseTrigger(condition="location_match", value=True),
                ResponseTrigger(condition="availability", value="immediate"),
            ],
        ),
        ResponseTemplate(
            id=STANDARD_TEMPLATE_ID,
            name="Standard Job Response",
            subject="Application Received - {{job_title}}",
            body=_STANDARD_BODY,
            variables=["name", "job_title", "skills", "contact_info"],
            triggers=[
                ResponseTrigger(
                    condition="verification_status", value=True, action="schedule_interview",
                ),
                ResponseTrigger(condition="skill_match", value=0.6),
            ],
        ),
        ResponseTemplate(
            id=FOLLOW_UP_TEMPLATE_ID,
            name="Follow-up Response",
            subject="Follow-up: Your Disaster Relief Application",
            body=_FOLLOW_UP_BODY,
            variables=["name", "previous_experience", "available_positions"],
            triggers=[
                ResponseTrigger(condition="skill_match", value=0.5),
            ],
        ),
    ]
