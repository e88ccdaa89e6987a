import pytest
from datetime import timedelta
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from database.models import Game, GameQuestion, User
from game.engine import GameEngine, GameStatus
from game.help import HelpKind, HelpResolver
from utils.errors import DatabaseError, GameNotFoundError, ProvisioningError, ValidationError
from helpers import answer_correctly, balance_of, correct_key, load_game, make_question, wrong_key


def count(db, model):
    with db.get_session() as session:
        return session.query(model).count()


def test_create_game_for_user(db, engine, questions, user_id):
    game_id = engine.create_game_for_user(user_id)

    assert count(db, Game) == 1
    assert count(db, GameQuestion) == 15
    with db.get_session() as session:
        game = session.get(Game, game_id)
        assert game.user_id == user_id
        assert [gq.level for gq in game.game_questions] == list(range(15))
        assert all(gq.question.level == gq.level for gq in game.game_questions)
        for gq in game.game_questions:
            assert sorted([gq.a, gq.b, gq.c, gq.d]) == [1, 2, 3, 4]
    assert engine.get_status(game_id) == GameStatus.IN_PROGRESS


def test_create_game_without_all_levels_saves_nothing(db, engine, user_id):
    with db.get_session() as session:
        for level in range(14):
            session.add(make_question(level))

    with pytest.raises(ProvisioningError) as exc_info:
        engine.create_game_for_user(user_id)

    assert exc_info.value.level == 14
    assert count(db, Game) == 0
    assert count(db, GameQuestion) == 0


def test_answer_correct_continues(db, engine, game_id):
    assert engine.answer_current_question(game_id, correct_key(db, game_id)) is True

    game = load_game(db, game_id)
    assert game['current_level'] == 1
    assert game['finished_at'] is None
    assert game['prize'] == 0
    assert engine.get_status(game_id) == GameStatus.IN_PROGRESS


def test_answer_accepts_upper_case_letter(db, engine, game_id):
    assert engine.answer_current_question(game_id, correct_key(db, game_id).upper()) is True


@pytest.mark.parametrize('letter', ['e', '', 'ab', None, 1])
def test_answer_rejects_invalid_letter(db, engine, game_id, letter):
    with pytest.raises(ValidationError):
        engine.answer_current_question(game_id, letter)
    assert load_game(db, game_id)['current_level'] == 0


def test_answer_unknown_game(engine, questions):
    with pytest.raises(GameNotFoundError) as exc_info:
        engine.answer_current_question(999, 'a')
    assert exc_info.value.game_id == 999


def test_wrong_answer_before_first_checkpoint(db, engine, game_id, user_id):
    answer_correctly(engine, db, game_id, 2)

    assert engine.answer_current_question(game_id, wrong_key(db, game_id)) is False

    game = load_game(db, game_id)
    assert game['finished_at'] is not None
    assert game['is_failed'] is True
    assert game['prize'] == 0
    assert game['current_level'] == 2
    assert engine.get_status(game_id) == GameStatus.FAIL
    assert balance_of(db, user_id) == 0


def test_wrong_answer_keeps_fireproof_prize(db, engine, game_id, user_id):
    # Five correct answers: levels 0..4 cleared, previous level is 4
    answer_correctly(engine, db, game_id, 5)

    assert engine.answer_current_question(game_id, wrong_key(db, game_id)) is False

    game = load_game(db, game_id)
    assert game['prize'] == 500
    assert game['is_failed'] is True
    assert balance_of(db, user_id) == 500


def test_wrong_answer_after_second_checkpoint(db, engine, game_id, user_id):
    answer_correctly(engine, db, game_id, 12)

    engine.answer_current_question(game_id, wrong_key(db, game_id))

    assert load_game(db, game_id)['prize'] == 16_000
    assert balance_of(db, user_id) == 16_000


def test_answering_last_question_wins(db, engine, game_id, user_id):
    answer_correctly(engine, db, game_id, 14)
    assert load_game(db, game_id)['finished_at'] is None

    assert engine.answer_current_question(game_id, correct_key(db, game_id)) is True

    game = load_game(db, game_id)
    assert game['current_level'] == 15
    assert game['prize'] == 1_000_000
    assert game['is_failed'] is False
    assert engine.get_status(game_id) == GameStatus.WON
    assert balance_of(db, user_id) == 1_000_000


def test_answer_after_finish_is_noop(db, engine, game_id, user_id):
    engine.take_money(game_id)
    finished = load_game(db, game_id)

    assert engine.answer_current_question(game_id, correct_key(db, game_id)) is False
    assert load_game(db, game_id) == finished
    assert balance_of(db, user_id) == 0


def test_take_money_after_two_answers(db, engine, game_id, user_id):
    answer_correctly(engine, db, game_id, 2)
    engine.take_money(game_id)

    game = load_game(db, game_id)
    assert game['prize'] == 200
    assert game['is_failed'] is False
    assert engine.get_status(game_id) == GameStatus.MONEY
    assert balance_of(db, user_id) == 200


def test_take_money_without_answers(db, engine, game_id, user_id):
    engine.take_money(game_id)

    game = load_game(db, game_id)
    assert game['prize'] == 0
    assert game['finished_at'] is not None
    assert engine.get_status(game_id) == GameStatus.MONEY
    assert balance_of(db, user_id) == 0


def test_take_money_twice_credits_once(db, engine, game_id, user_id):
    answer_correctly(engine, db, game_id, 4)
    engine.take_money(game_id)
    engine.take_money(game_id)

    assert load_game(db, game_id)['prize'] == 500
    assert balance_of(db, user_id) == 500


def test_balance_accumulates_over_games(db, engine, game_id, user_id):
    answer_correctly(engine, db, game_id, 3)
    engine.take_money(game_id)

    second_id = engine.create_game_for_user(user_id)
    answer_correctly(engine, db, second_id, 1)
    engine.take_money(second_id)

    assert balance_of(db, user_id) == 300 + 100


def test_timeout_finishes_game_with_fireproof_prize(db, engine, clock, game_id, user_id):
    answer_correctly(engine, db, game_id, 5)
    clock.advance(minutes=36)

    assert engine.answer_current_question(game_id, correct_key(db, game_id)) is False

    game = load_game(db, game_id)
    assert game['current_level'] == 5
    assert game['prize'] == 500
    assert game['is_failed'] is True
    assert engine.get_status(game_id) == GameStatus.TIMEOUT
    assert balance_of(db, user_id) == 500


def test_check_timeout(db, engine, clock, game_id, user_id):
    clock.advance(minutes=35)
    assert engine.check_timeout(game_id) is False

    clock.advance(seconds=1)
    assert engine.check_timeout(game_id) is True
    assert engine.get_status(game_id) == GameStatus.TIMEOUT

    # Already finished: nothing more happens
    assert engine.check_timeout(game_id) is False
    assert balance_of(db, user_id) == 0


def test_take_money_after_timeout_is_noop(db, engine, clock, game_id, user_id):
    answer_correctly(engine, db, game_id, 3)
    clock.advance(hours=1)

    engine.take_money(game_id)

    game = load_game(db, game_id)
    assert game['prize'] == 0
    assert game['is_failed'] is True
    assert engine.get_status(game_id) == GameStatus.TIMEOUT
    assert balance_of(db, user_id) == 0


def test_use_help_once_per_kind(db, engine, game_id):
    assert engine.use_help(game_id, 'fifty_fifty') is True
    with db.get_session() as session:
        first = session.get(Game, game_id).current_game_question.fifty_fifty

    assert engine.use_help(game_id, HelpKind.FIFTY_FIFTY) is False

    with db.get_session() as session:
        game = session.get(Game, game_id)
        assert game.fifty_fifty_used is True
        assert game.current_game_question.fifty_fifty == first
        assert len(first) == 2
        assert game.current_game_question.correct_answer_key() in first


def test_used_help_stays_used_on_next_level(db, engine, game_id):
    assert engine.use_help(game_id, 'audience_help') is True
    answer_correctly(engine, db, game_id, 1)

    assert engine.use_help(game_id, 'audience_help') is False
    with db.get_session() as session:
        game = session.get(Game, game_id)
        assert game.current_game_question.audience_help is None
        assert set(game.question_at(0).audience_help) == {'a', 'b', 'c', 'd'}


def test_all_helps_on_one_question(db, engine, game_id):
    for kind in ('fifty_fifty', 'audience_help', 'friend_call'):
        assert engine.use_help(game_id, kind) is True

    game = load_game(db, game_id)
    assert game['fifty_fifty_used'] and game['audience_help_used'] and game['friend_call_used']
    with db.get_session() as session:
        payload_kinds = [p.kind for p in session.get(Game, game_id).current_game_question.help_payloads]
    assert payload_kinds == [HelpKind.FIFTY_FIFTY, HelpKind.AUDIENCE_HELP, HelpKind.FRIEND_CALL]


def test_use_help_unknown_kind(db, engine, game_id):
    with pytest.raises(ValidationError):
        engine.use_help(game_id, 'ask_the_host')


def test_use_help_on_finished_game(db, engine, game_id):
    engine.take_money(game_id)
    assert engine.use_help(game_id, 'friend_call') is False
    assert load_game(db, game_id)['friend_call_used'] is False


def test_current_level_never_decreases(db, engine, game_id):
    levels = [load_game(db, game_id)['current_level']]
    for step in range(6):
        engine.answer_current_question(game_id, correct_key(db, game_id))
        levels.append(load_game(db, game_id)['current_level'])
    engine.use_help(game_id, 'fifty_fifty')
    engine.answer_current_question(game_id, wrong_key(db, game_id))
    levels.append(load_game(db, game_id)['current_level'])
    engine.take_money(game_id)
    levels.append(load_game(db, game_id)['current_level'])

    assert levels == sorted(levels)


def test_balance_credit_failure_rolls_back_finish(db, engine, game_id, user_id):
    answer_correctly(engine, db, game_id, 4)

    def fail_update(mapper, connection, target):
        raise OperationalError("UPDATE users", {}, Exception("database is locked"))

    event.listen(User, 'before_update', fail_update)
    try:
        with pytest.raises(DatabaseError):
            engine.take_money(game_id)
    finally:
        event.remove(User, 'before_update', fail_update)

    game = load_game(db, game_id)
    assert game['finished_at'] is None
    assert game['prize'] == 0
    assert balance_of(db, user_id) == 0

    # Safe to retry once storage is back
    engine.take_money(game_id)
    assert load_game(db, game_id)['prize'] == 500
    assert balance_of(db, user_id) == 500


def test_transient_failure_is_retried(db, engine, game_id, user_id):
    calls = []

    def fail_once(mapper, connection, target):
        calls.append(target.id)
        if len(calls) == 1:
            raise OperationalError("UPDATE users", {}, Exception("connection reset"))

    event.listen(User, 'before_update', fail_once)
    try:
        engine.take_money(game_id)
    finally:
        event.remove(User, 'before_update', fail_once)

    assert len(calls) == 2
    assert load_game(db, game_id)['finished_at'] is not None


def test_racing_calls_only_first_wins(db, engine, clock, game_id, user_id):
    """A cash-out sneaking in while an answer is in flight wins; the answer is dropped."""
    answer_correctly(engine, db, game_id, 2)
    right = correct_key(db, game_id)
    state = {'raced': False}
    real_now = clock.now

    def racing_clock():
        if not state['raced']:
            state['raced'] = True
            engine.clock = lambda: real_now
            engine.take_money(game_id)
            engine.clock = racing_clock
        return real_now

    engine.clock = racing_clock
    assert engine.answer_current_question(game_id, right) is False

    game = load_game(db, game_id)
    assert game['current_level'] == 2
    assert game['prize'] == 200
    assert engine.get_status(game_id) == GameStatus.MONEY
    assert balance_of(db, user_id) == 200


def test_game_view_in_progress(db, engine, clock, game_id):
    answer_correctly(engine, db, game_id, 4)
    engine.use_help(game_id, 'fifty_fifty')
    clock.advance(minutes=5)

    view = engine.get_game_view(game_id)

    assert view.status == 'in_progress'
    assert view.question_number == 5
    assert view.current_question_prize == 1_000
    assert view.guaranteed_prize == 500
    assert view.cash_out_prize == 500
    assert len(view.variants) == 2
    assert view.available_helps == ['audience_help', 'friend_call']
    assert view.seconds_left == 30 * 60
    assert view.correct_answer_key is None


def test_game_view_after_wrong_answer(db, engine, game_id):
    right = correct_key(db, game_id)
    engine.answer_current_question(game_id, wrong_key(db, game_id))

    view = engine.get_game_view(game_id)

    assert view.is_finished
    assert view.status == 'fail'
    assert view.correct_answer_key == right
    assert view.available_helps == []


def test_repeated_answer_for_same_level_is_ignored(db, engine, game_id, user_id):
    right = correct_key(db, game_id)

    assert engine.answer_current_question(game_id, right, expected_level=0) is True
    after_first = load_game(db, game_id)
    assert engine.answer_current_question(game_id, right, expected_level=0) is False

    assert load_game(db, game_id) == after_first
    assert after_first['current_level'] == 1
    assert after_first['finished_at'] is None
    assert balance_of(db, user_id) == 0


def test_answer_for_current_level_is_applied(db, engine, game_id):
    answer_correctly(engine, db, game_id, 2)
    assert engine.answer_current_question(game_id, correct_key(db, game_id), expected_level=2) is True
    assert load_game(db, game_id)['current_level'] == 3


def test_zero_settings_are_kept(db):
    engine = GameEngine(db=db, time_limit=timedelta(0), retry_attempts=0, retry_delay=0)
    assert engine.time_limit == timedelta(0)
    assert engine.retry_attempts == 0


def test_helps_are_computed_by_resolver(db, engine, game_id):
    requested = []

    class RecordingResolver(HelpResolver):
        def resolve(self, kind, correct_key):
            requested.append(kind)
            return super().resolve(kind, correct_key)

    engine.help_resolver = RecordingResolver(engine.rng, friend_accuracy=1.0)
    for kind in HelpKind:
        assert engine.use_help(game_id, kind) is True

    assert requested == list(HelpKind)
