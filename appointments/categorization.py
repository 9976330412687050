# appointments/categorization.py - Past/today/future tabs and day sections for the agenda
from dataclasses import dataclass, field

from django.utils.formats import date_format

from core.utils import get_local_now, local_day_bounds, to_local

PAST = 'past'
TODAY = 'today'
FUTURE = 'future'

BUCKETS = (PAST, TODAY, FUTURE)


@dataclass
class AppointmentSection:
    """One day of appointments, displayed under its month header"""
    title: str
    group_key: str
    month_key: str
    month_label: str
    items: list = field(default_factory=list)

    def __len__(self):
        return len(self.items)


def categorize_appointments(appointments, now=None):
    """
    Split appointments into past, today and future buckets

    Today runs from local midnight of now's date up to (excluding) the next
    local midnight. Every appointment lands in exactly one bucket and each
    bucket keeps the input order.

    Returns:
        dict with 'past', 'today' and 'future' lists
    """
    if now is None:
        now = get_local_now()

    today_start, today_end = local_day_bounds(now)

    buckets = {PAST: [], TODAY: [], FUTURE: []}

    for appointment in appointments:
        appointment_time = appointment.appointment_time

        if appointment_time < today_start:
            buckets[PAST].append(appointment)
        elif appointment_time < today_end:
            buckets[TODAY].append(appointment)
        else:
            buckets[FUTURE].append(appointment)

    return buckets


def section_title(local_dt):
    """Weekday and day label, e.g. 'segunda-feira, 19 de outubro'"""
    return f"{date_format(local_dt, 'l')}, {date_format(local_dt, 'MONTH_DAY_FORMAT')}"


def group_into_sections(bucket):
    """
    Group a bucket into one section per calendar day

    Sections come out in the order their day first appears in the bucket, so
    a bucket sorted newest-first yields newest-first sections. Keys are
    canonical (YYYY-MM-DD / YYYY-MM); titles are formatted for the active
    language.
    """
    sections = {}

    for appointment in bucket:
        local_dt = to_local(appointment.appointment_time)
        day_key = local_dt.strftime('%Y-%m-%d')

        section = sections.get(day_key)
        if section is None:
            section = AppointmentSection(
                title=section_title(local_dt),
                group_key=day_key,
                month_key=local_dt.strftime('%Y-%m'),
                month_label=date_format(local_dt, 'YEAR_MONTH_FORMAT'),
            )
            sections[day_key] = section

        section.items.append(appointment)

    return list(sections.values())


def sections_with_month_headers(sections):
    """
    Pair each section with whether a month header goes right before it

    Yields:
        Tuples of (show_month_header, section)
    """
    previous_month = None
    for section in sections:
        yield section.month_key != previous_month, section
        previous_month = section.month_key


def sections_for_bucket(buckets, bucket):
    """
    Sections for one agenda tab from already categorized buckets

    The past tab lists the most recent day first; today and future run
    chronologically. Unknown tab names give an empty list.
    """
    if bucket not in BUCKETS:
        return []

    items = buckets[bucket]
    if bucket == PAST:
        items = list(reversed(items))

    return group_into_sections(items)


def get_bucket_sections(appointments, bucket, now=None):
    """Categorize appointments and return the sections for one agenda tab"""
    return sections_for_bucket(categorize_appointments(appointments, now), bucket)
