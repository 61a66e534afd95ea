import pytest
from sqlalchemy import update

from conftest import sample_questions
from livequiz import db
from livequiz.errors import AccessError, ConflictError, NotFoundError
from livequiz.models import AnswerRecord, Game
from livequiz.services.quiz import ledger, lifecycle, locks
from livequiz.services.quiz.lifecycle import SessionState, state_of
from livequiz.services.quiz.questions import session_questions


@pytest.fixture()
def game(app_ctx):
    g = Game(id=9001, name='Service game', owner='svc@example.com', questions=sample_questions())
    db.session.add(g)
    db.session.commit()
    return g


def test_state_machine_walks_through_every_question(game, fake_clock):
    session = lifecycle.start(game.id)
    assert state_of(session) is SessionState.LOBBY
    assert session.iso_time_last_question_started is None

    assert lifecycle.advance(game.id) == 0
    assert state_of(session) is SessionState.QUESTION_ACTIVE
    assert session.iso_time_last_question_started == fake_clock.now

    fake_clock.tick(7)
    assert lifecycle.advance(game.id) == 1
    assert session.iso_time_last_question_started == fake_clock.now
    assert lifecycle.advance(game.id) == 2

    assert lifecycle.advance(game.id) is None
    assert state_of(session) is SessionState.ENDED
    assert session.position == 2
    assert game.active_session_id is None
    assert game.old_sessions == [session.id]


def test_start_conflicts_with_running_session(game):
    lifecycle.start(game.id)
    with pytest.raises(ConflictError):
        lifecycle.start(game.id)


def test_conflict_is_an_access_error():
    assert issubclass(ConflictError, AccessError)


def test_advance_without_session_is_not_found(game):
    with pytest.raises(NotFoundError):
        lifecycle.advance(game.id)


def test_end_on_ended_session_fails_without_mutation(game):
    session = lifecycle.start(game.id)
    lifecycle.advance(game.id)
    lifecycle.end(game.id)
    ended_at = session.ended_at
    with pytest.raises(AccessError):
        lifecycle.end(game.id)
    db.session.rollback()
    assert session.ended_at == ended_at
    assert session.position == 0


def test_window_close_is_idempotent(game):
    session = lifecycle.start(game.id)
    player_id = lifecycle.join(session.id, 'Alice')
    lifecycle.advance(game.id)
    ledger.submit(player_id, ['2'], question_index=0)

    ledger.close_question(session, 0)
    db.session.commit()
    record = AnswerRecord.query.filter_by(player_id=player_id, question_index=0).one()
    assert (record.correct, record.points, record.closed) == (True, 10, True)
    answered_at = record.answered_at

    # a second close, e.g. reveal racing the admin advancing, changes nothing
    question = session_questions(session)[0]
    ledger.record_for_scoring(record.player, 0, question)
    ledger.close_question(session, 0)
    db.session.commit()
    assert (record.correct, record.points, record.answered_at) == (True, 10, answered_at)


def test_submit_for_stale_question_is_rejected(game):
    session = lifecycle.start(game.id)
    player_id = lifecycle.join(session.id, 'Alice')
    lifecycle.advance(game.id)
    lifecycle.advance(game.id)
    with pytest.raises(AccessError) as excinfo:
        ledger.submit(player_id, ['2'], question_index=0)
    assert excinfo.value.message == ledger.ANSWER_CLOSED_MESSAGE


def test_time_remaining_is_derived_from_the_start_stamp(game, fake_clock):
    session = lifecycle.start(game.id)
    player_id = lifecycle.join(session.id, 'Alice')
    lifecycle.advance(game.id)
    assert lifecycle.current_question_for(player_id)['timeRemaining'] == 20
    fake_clock.tick(19.5)
    # partial seconds round up; the answer is not available early
    assert lifecycle.current_question_for(player_id)['timeRemaining'] == 1
    assert lifecycle.status(session.id)['answerAvailable'] is False
    fake_clock.tick(0.5)
    assert lifecycle.current_question_for(player_id)['timeRemaining'] == 0
    fake_clock.tick(60)
    assert lifecycle.current_question_for(player_id)['timeRemaining'] == 0
    assert lifecycle.status(session.id)['answerAvailable'] is True


def test_locks_are_per_game():
    assert locks.lock_for(1) is locks.lock_for(1)
    assert locks.lock_for(1) is not locks.lock_for(2)
    locks.forget(1)
    locks.forget(2)


def test_submit_rejected_when_window_closes_before_the_write(game, monkeypatch):
    session = lifecycle.start(game.id)
    player_id = lifecycle.join(session.id, 'Alice')
    lifecycle.advance(game.id)

    original = ledger._ensure_record

    def close_elsewhere(player, question_index, started_at):
        # another worker reveals and scores the record after the lookup
        record = original(player, question_index, started_at)
        with db.engine.begin() as conn:
            conn.execute(
                update(AnswerRecord)
                .where(AnswerRecord.id == record.id)
                .values(closed=True, answered_at=record.question_started_at)
            )
        return record

    monkeypatch.setattr(ledger, '_ensure_record', close_elsewhere)
    with pytest.raises(AccessError) as excinfo:
        ledger.submit(player_id, ['2'], question_index=0)
    assert excinfo.value.message == ledger.ANSWER_CLOSED_MESSAGE

    db.session.expire_all()
    record = AnswerRecord.query.filter_by(player_id=player_id, question_index=0).one()
    assert record.closed is True
    assert record.answers == []
    assert (record.correct, record.points) == (False, 0)
