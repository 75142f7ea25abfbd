# Email bodies and subject lines for task reports and reminders
from html import escape


def completion_rate(report):
    """Completed share of all tasks as a percentage, one decimal; 0.0 for an empty report."""
    if not report.total_tasks:
        return 0.0
    return round(report.completed_tasks / report.total_tasks * 100, 1)


def _label(key):
    if key is None or key == '':
        return '(none)'
    return escape(str(key))


def _breakdown(counts):
    return ''.join(f'<li>{_label(key)}: {count}</li>' for key, count in counts.items())


def render_report_html(report):
    """
    Render an AggregateReport as an HTML email body.

    Args:
        report (AggregateReport): Report to render.

    Returns:
        str: HTML document with the summary and the subject/priority breakdowns.
    """
    return (
        '<html>\n'
        '<body>\n'
        '<h1>Task Report</h1>\n'
        f'<h2>Period: {escape(report.period)}</h2>\n'
        '<div>\n'
        '<h3>Summary</h3>\n'
        f'<p>Total Tasks: {report.total_tasks}</p>\n'
        f'<p>Completed Tasks: {report.completed_tasks}</p>\n'
        f'<p>Overdue Tasks: {report.overdue_tasks}</p>\n'
        f'<p>Completion Rate: {completion_rate(report):.1f}%</p>\n'
        f'<p>Average Completion Time: {report.average_completion_time:.1f} days</p>\n'
        f'<p>Productivity Score: {report.productivity_score:.1f}%</p>\n'
        '</div>\n'
        '<div>\n'
        '<h3>Tasks by Subject</h3>\n'
        f'<ul>{_breakdown(report.tasks_by_subject)}</ul>\n'
        '</div>\n'
        '<div>\n'
        '<h3>Tasks by Priority</h3>\n'
        f'<ul>{_breakdown(report.tasks_by_priority)}</ul>\n'
        '</div>\n'
        '</body>\n'
        '</html>\n'
    )


def report_subject(report):
    return f'Your Task Report: {report.period}'


def render_reminder_html(task):
    """HTML body of the reminder email for a single task."""
    parts = [
        f'<h2>Task Reminder: {escape(task.title)}</h2>',
        f'<p><strong>Subject:</strong> {_label(task.subject)}</p>',
        f'<p><strong>Due Date:</strong> {task.due_date.strftime("%Y-%m-%d")}</p>',
        f'<p><strong>Priority:</strong> {task.priority.value}</p>',
    ]
    if task.description:
        parts.append(f'<p><strong>Description:</strong> {escape(task.description)}</p>')
    parts.append("<p>Don't forget to complete this task!</p>")
    return '\n'.join(parts)


def reminder_subject(task):
    return f'Reminder: {task.title} is due soon'
