"""Built-in templates created by ``NotificationTemplateService.seed_defaults``."""

from __future__ import annotations

from typing import Any

DEFAULT_TEMPLATES: tuple[dict[str, Any], ...] = (
    {
        "key": "task_assigned",
        "name": "Task Assigned",
        "channel": "email",
        "subject": "New task assigned: {{ task_title }}",
        "content": (
            "Hello {{ user_name }},<br><br>"
            "You have been assigned a new task: <strong>{{ task_title }}</strong><br><br>"
            "Description: {{ task_description }}<br>"
            "Due date: {{ due_date }}<br><br>"
            'View task: <a href="{{ task_url }}">{{ task_url }}</a>'
        ),
        "variables": ["user_name", "task_title", "task_description", "due_date", "task_url"],
    },
    {
        "key": "task_completed",
        "name": "Task Completed",
        "channel": "email",
        "subject": "Task completed: {{ task_title }}",
        "content": (
            "Task <strong>{{ task_title }}</strong> has been completed by {{ completed_by }}.<br><br>"
            'View task: <a href="{{ task_url }}">{{ task_url }}</a>'
        ),
        "variables": ["task_title", "completed_by", "task_url"],
    },
    {
        "key": "deadline_reminder",
        "name": "Deadline Reminder",
        "channel": "email",
        "subject": "Deadline reminder: {{ task_title }}",
        "content": (
            "Reminder: Task <strong>{{ task_title }}</strong> is due {{ due_date }}.<br><br>"
            "Please complete it soon.<br><br>"
            'View task: <a href="{{ task_url }}">{{ task_url }}</a>'
        ),
        "variables": ["task_title", "due_date", "task_url"],
    },
    {
        "key": "system_alert",
        "name": "System Alert",
        "channel": "email",
        "subject": "System Alert: {{ alert_type }}",
        "content": "System alert: {{ alert_message }}<br><br>Time: {{ timestamp }}",
        "variables": ["alert_type", "alert_message", "timestamp"],
    },
)
