"""
Lesson-related email notifications.

Each helper builds the template data for one message and hands it to the
Communications Service. They return False on any delivery problem.
"""

from libs.common.config import get_settings
from libs.common.emails.client import get_email_client


async def send_instructor_assignment_email(
    to_email: str,
    instructor_name: str,
    swimmer_name: str,
    lesson_dates: str,
    lesson_time: str,
    meeting_days: list[str],
    swimmer_age: int | None = None,
    swimmer_notes: str | None = None,
) -> bool:
    """Tell an instructor they now teach a swimmer in a lesson."""
    return await get_email_client().send_template(
        template_type="instructor_assignment",
        to_email=to_email,
        template_data={
            "instructor_name": instructor_name,
            "swimmer_name": swimmer_name,
            "swimmer_age": swimmer_age,
            "swimmer_notes": swimmer_notes or "",
            "lesson_dates": lesson_dates,
            "lesson_time": lesson_time,
            "meeting_days": ", ".join(meeting_days),
            "dashboard_url": f"{get_settings().APP_BASE_URL}/instructor",
        },
    )


async def send_instructor_unassignment_email(
    to_email: str,
    instructor_name: str,
    swimmer_name: str,
    lesson_dates: str,
) -> bool:
    return await get_email_client().send_template(
        template_type="instructor_unassignment",
        to_email=to_email,
        template_data={
            "instructor_name": instructor_name,
            "swimmer_name": swimmer_name,
            "lesson_dates": lesson_dates,
        },
    )


async def send_one_time_login_email(
    to_email: str,
    instructor_name: str,
    login_token: str,
) -> bool:
    """
    Send first-login credentials to an instructor whose account still requires
    a password change. The link carries the one-time login token.
    """
    base_url = get_settings().APP_BASE_URL
    return await get_email_client().send_template(
        template_type="one_time_login",
        to_email=to_email,
        template_data={
            "instructor_name": instructor_name,
            "login_url": f"{base_url}/login?token={login_token}",
        },
    )
