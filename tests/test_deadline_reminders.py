# tests/test_deadline_reminders.py

from datetime import timedelta

from send_deadline_reminders.check_deadline_function import due_soon, send_reminders
from task_common.models import Status

from .conftest import make_task
from .fakes import FakeDispatcher, FakeProfiles, FakeTaskStore


def _store():
    return FakeTaskStore([
        make_task('soon', owner='alice', title='Essay', due='2024-06-02'),
        make_task('edge', owner='bob', title='Quiz', due='2024-06-04T00:00:00Z'),
        make_task('later', owner='alice', due='2024-06-10'),
        make_task('past', owner='alice', due='2024-05-20'),
        make_task('done', owner='alice', due='2024-06-02', status=Status.COMPLETED,
                  created='2024-05-01', completed='2024-05-30'),
    ])


def test_due_soon_window_is_exclusive_of_now_and_inclusive_of_threshold(now):
    tasks = _store().scan()
    assert [t.id for t in due_soon(tasks, now, timedelta(days=3))] == ['soon', 'edge']


def test_send_reminders_emails_each_owner(now):
    dispatcher = FakeDispatcher()
    profiles = FakeProfiles({'alice': 'alice@example.edu', 'bob': 'bob@example.edu'})

    summary = send_reminders(_store(), profiles, dispatcher, now, window_days=3)

    assert summary == {'checked': 5, 'due': 2, 'sent': 2, 'failed': 0}
    assert [(d, s) for d, s, _ in dispatcher.sent] == [
        ('alice@example.edu', 'Reminder: Essay is due soon'),
        ('bob@example.edu', 'Reminder: Quiz is due soon'),
    ]


def test_send_reminders_continues_past_failures(now):
    dispatcher = FakeDispatcher(result=False)
    profiles = FakeProfiles({'bob': 'bob@example.edu'})

    summary = send_reminders(_store(), profiles, dispatcher, now, window_days=3)

    # alice has no profile, bob's send fails
    assert summary == {'checked': 5, 'due': 2, 'sent': 0, 'failed': 2}
    assert len(dispatcher.sent) == 1


def test_unreadable_record_does_not_stop_the_sweep(now):
    store = FakeTaskStore([make_task('soon', owner='alice', title='Essay', due='2024-06-02')])
    store.items['garbled'] = {'id': 'garbled', 'owner': 'alice', 'title': 'Lab',
                              'dueDate': 'next week', 'createdAt': '2024-05-01'}
    dispatcher = FakeDispatcher()

    summary = send_reminders(store, FakeProfiles({'alice': 'alice@example.edu'}), dispatcher, now)

    assert summary == {'checked': 2, 'due': 1, 'sent': 1, 'failed': 1}
    assert [s for _, s, _ in dispatcher.sent] == ['Reminder: Essay is due soon']
