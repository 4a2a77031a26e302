"""Prompt templates for daily curation.

The user prompt is rendered from the curation context bundle built by
``CurationEngine.build_context``.
"""

from typing import Any

from jinja2 import BaseLoader, Environment

# Jinja2 environment for template rendering
_jinja_env = Environment(loader=BaseLoader(), trim_blocks=True, lstrip_blocks=True)


def render_template(template_str: str, variables: dict[str, Any]) -> str:
    """Render a Jinja2 template string with variables.

    Args:
        template_str: Template string with {{ variable }} placeholders
        variables: Variables to substitute

    Returns:
        Rendered string
    """
    template = _jinja_env.from_string(template_str)
    return template.render(**variables)


CURATION_SYSTEM_PROMPT = (
    "You are an expert project manager and productivity advisor. Analyze user tasks "
    "and their completion history to provide personalized daily curation suggestions. "
    "Focus on matching tasks to user capabilities, considering their average completion "
    "times, preferred task types, and story point patterns. Always respond with valid "
    "JSON only."
)

CURATION_USER_PROMPT = """Please analyze the following project and user context to provide daily curation suggestions:

**Project Information:**
- Title: {{ project.title }}
- Type: {{ project.type }}
- Description: {{ project.description or '' }}
{% if project.due_date %}
- Project Due Date: {{ project.due_date }}
{% endif %}
{% if project.next_iteration_due_date %}
- Next Iteration Due Date: {{ project.next_iteration_due_date }}
{% endif %}

**User Information:**
- Name: {{ user.name }}
- Current Date: {{ current_date }}

**User's Recent Performance (Last Month):**
- Total Tasks Completed: {{ user_task_history.total_tasks_completed }}
- Total Story Points Completed: {{ user_task_history.total_story_points }}
- Average Completion Time: {{ user_task_history.average_completion_time_hours }} hours
- Average Story Points per Task: {{ user_task_history.average_story_points }}
{% if user_task_history.top_task_types %}
- Top Task Types Completed: {{ user_task_history.top_task_types | join(', ') }}
{% endif %}

{% if is_organization_user %}
**User Type:** Organization member (only suggest unassigned tasks)
{% else %}
**User Type:** Individual user (can suggest any tasks)
{% endif %}

**Available Leaf Tasks (Tasks without subtasks):**
{% for task in tasks %}
- ID: {{ task.id }} - {{ task.title }} ({{ task.status }}){% if task.due_date %} - Due: {{ task.due_date }}{% endif %}{% if task.size %} - Size: {{ task.size }}{% endif %}{% if task.story_points %} - Points: {{ task.story_points }}{% endif %}{% if task.description %} - Description: {{ task.description }}{% endif %}

{% endfor %}

{% if is_organization_user %}
**IMPORTANT:** This user is in an organization. Only suggest tasks that are NOT already assigned to someone today.
Please provide suggestions for:
1. Unassigned priority tasks to focus on today (considering user's completion history and project deadlines)
2. Unassigned tasks that match the user's proven capabilities (based on their task type history)
3. Unassigned tasks that might be overdue or at risk
{% else %}
Please provide suggestions for:
1. Priority tasks to focus on today (considering user's completion history and project deadlines)
2. Tasks that match the user's proven capabilities (based on their task type history)
3. Tasks that might be overdue or at risk
{% endif %}
4. Recommended task prioritization based on user's average completion time and story point preferences
5. Overall project progress insights and recommendations

Consider the user's historical performance when making recommendations:
- If they typically complete {{ user_task_history.average_story_points }} point tasks in {{ user_task_history.average_completion_time_hours }} hours, prioritize similar tasks
- If they have a strong track record with certain task types, suggest similar tasks
- Consider project deadlines and iteration cycles when prioritizing

Respond with JSON in this format:
{
  "suggestions": [
    {"type": "priority", "task_id": "<task id>", "message": "Focus on this task today - matches your proven capabilities"},
    {"type": "risk", "task_id": "<task id>", "message": "This task is at risk of delay and needs attention"},
    {"type": "optimization", "message": "Consider breaking down large tasks based on your completion patterns"}
  ],
  "summary": "Brief overall assessment considering user performance",
  "focus_areas": ["area1", "area2"],
  "recommended_tasks": ["<task id>", "<task id>"]
}
"""


def render_curation_prompt(context: dict[str, Any]) -> str:
    """Render the user prompt for a curation context bundle."""
    return render_template(CURATION_USER_PROMPT, context)
