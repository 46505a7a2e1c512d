"""End-to-end retrieval scenarios driven through the public :class:`Retriever`.

What:
  Exercise ``first``/``last``/``all``/``find`` against the instrumented fake
  IMAP backend, covering the reference scenarios (oldest message, newest two,
  everything, empty mailbox, rejected login) and the result-size properties.

Why:
  These are the operations callers actually use. Regressions in boundary
  selection, the single-versus-list return shape, or session cleanup would be
  visible to every consumer.

How:
  The ``retriever`` fixture wires a :class:`Retriever` to the fake backend
  preloaded with UIDs 1, 2 and 3; tests add or clear messages as needed and
  inspect both the returned messages and the backend's command log.

Invariants & Safety Rules:
  - Every call opens and closes exactly one session.
  - The ``order`` option never re-sorts results.
"""

import json

import pytest

from fakes import make_message
from mailretriever import (
    AuthenticationError,
    InvalidRequestError,
    InvalidUsageError,
    RetrievedMessage,
    Retriever,
    RetrieverConfig,
)
from mailretriever.utils.logging import JsonLogger


def _subjects(result):
    return [message.subject for message in result]


def test_first_returns_oldest_message(retriever, backend):
    message = retriever.first()
    assert isinstance(message, RetrievedMessage)
    assert message.uid == 1
    assert message.subject == "first"
    assert backend.count("logout") == 1


def test_last_with_count_returns_newest_in_fetch_order(retriever):
    result = retriever.last(count=2)
    assert [m.uid for m in result] == [2, 3]
    assert _subjects(result) == ["second", "third"]


def test_last_defaults_to_single_newest(retriever):
    assert retriever.last().uid == 3


def test_all_returns_every_message(retriever, backend):
    result = retriever.all()
    assert [m.uid for m in result] == [1, 2, 3]
    assert backend.count("fetch") == 1


def test_empty_mailbox_returns_empty_result_without_fetch(retriever, backend):
    backend.mailboxes["INBOX"].clear()
    assert retriever.first() == []
    assert retriever.last(count=3) == []
    assert retriever.all() == []
    assert backend.count("fetch") == 0
    assert backend.count("add_flags") == 0
    assert backend.count("logout") == 3


def test_rejected_login_propagates_and_closes_once(retriever, backend):
    backend.fail_login = True
    with pytest.raises(AuthenticationError):
        retriever.find()
    assert backend.count("logout") == 1
    assert backend.count("search") == 0


@pytest.mark.parametrize("count", [1, 2, 3, 5])
def test_result_length_is_min_of_count_and_matches(retriever, count):
    for what in ("first", "last"):
        result = retriever.find(what=what, count=count)
        size = 1 if isinstance(result, RetrievedMessage) else len(result)
        assert size == min(count, 3)


def test_unbounded_result_matches_search_size(retriever, backend):
    for index in range(7):
        backend.append("INBOX", make_message(f"extra {index}"))
    assert len(retriever.find(count="all")) == 10
    assert len(retriever.all()) == 10


def test_first_and_last_select_disjoint_boundaries(retriever, backend):
    for index in range(5):
        backend.append("INBOX", make_message(f"extra {index}"))
    oldest = {m.uid for m in retriever.first(count=4)}
    newest = {m.uid for m in retriever.last(count=4)}
    assert oldest == {1, 2, 3, 4}
    assert newest == {5, 6, 7, 8}
    assert not oldest & newest
    assert len(oldest | newest) == 8


def test_all_ignores_caller_count(retriever):
    assert len(retriever.all(count=1)) == 3


def test_find_all_mode_honours_explicit_count(retriever, backend):
    assert [m.uid for m in retriever.find(what="all", count=2)] == [1, 2]
    single = retriever.find(what="all", count=1)
    assert isinstance(single, RetrievedMessage)
    assert single.uid == 1
    assert len(retriever.find(what="all")) == 3
    assert ("fetch", ([1, 2], ["RFC822"])) in backend.calls


def test_single_count_on_empty_mailbox_returns_empty_list(retriever, backend):
    backend.mailboxes["INBOX"].clear()
    assert retriever.find(count=1) == []


def test_order_option_is_accepted_but_not_applied(retriever):
    """
    What:
        ``order="desc"`` returns the same sequence as ``order="asc"``.

    Why:
        The option is validated and carried on the request but has never
        reordered results; callers relying on it would otherwise break
        silently if this changed.
    """
    ascending = retriever.last(count=3, order="asc")
    descending = retriever.last(count=3, order="desc")
    assert [m.uid for m in ascending] == [m.uid for m in descending] == [1, 2, 3]


def test_retrieved_messages_are_flagged_seen(retriever, backend):
    retriever.last(count=2)
    assert b"\\Seen" in backend.flags[2]
    assert b"\\Seen" in backend.flags[3]
    assert backend.flags[1] == set()


def test_unseen_query_skips_already_retrieved_mail(backend, log_stream):
    retriever = Retriever(
        query="UNSEEN", user_name="bob", password="pw", logger=JsonLogger(stream=log_stream)
    )
    assert retriever.first().uid == 1
    assert retriever.first().uid == 2
    assert ("search", (["UNSEEN"],)) in backend.calls


def test_mark_seen_false_leaves_flags_untouched(retriever, backend):
    retriever.all(mark_seen=False)
    assert all(not flags for flags in backend.flags.values())


def test_observer_receives_each_message_in_order(retriever):
    observed = []
    result = retriever.all(on_message=lambda message: observed.append(message.uid))
    assert observed == [m.uid for m in result] == [1, 2, 3]


def test_invalid_options_fail_before_connecting(retriever, backend):
    with pytest.raises(InvalidRequestError):
        retriever.first(count=0)
    with pytest.raises(InvalidRequestError):
        retriever.find(what="sideways")
    with pytest.raises(InvalidUsageError):
        retriever.first(on_message="not callable")
    assert backend.calls == []


def test_each_call_opens_an_independent_session(retriever, backend):
    retriever.first()
    retriever.last()
    assert backend.count("connect") == 2
    assert backend.count("logout") == 2
    assert backend.connections[0] == ("imap.example.org", 993, True)


def test_logs_share_run_id_and_hide_credentials(retriever, log_stream):
    retriever.first()
    records = [json.loads(line) for line in log_stream.getvalue().splitlines()]
    run_ids = {record.get("run_id") for record in records}
    assert len(run_ids) == 1 and None not in run_ids
    assert "hunter2" not in log_stream.getvalue()


def test_settings_merge_overrides_onto_defaults():
    retriever = Retriever({"address": "imap.example.org"}, port=993)
    assert retriever.settings == RetrieverConfig(address="imap.example.org", port=993)
    assert Retriever().settings == RetrieverConfig()
    config = RetrieverConfig(mailbox="Archive")
    assert Retriever(config).settings is config


def test_from_config_file(tmp_path, backend):
    path = tmp_path / "retriever.yaml"
    path.write_text("retriever:\n  address: mail.example.net\n  mailbox: INBOX\n  user_name: dana\n")
    retriever = Retriever.from_config_file(path, password="pw")
    assert retriever.settings.address == "mail.example.net"
    assert retriever.settings.password == "pw"
    assert retriever.first(count=2)[0].uid == 1
    assert backend.calls[1] == ("login", ("dana", "pw"))
