from database.models import Game, Question, User


def make_question(level, n=0):
    return Question(
        level=level,
        text=f"Вопрос {n} уровня {level}",
        answer1=f"Правильный {level}-{n}",
        answer2=f"Неправильный A {level}-{n}",
        answer3=f"Неправильный B {level}-{n}",
        answer4=f"Неправильный C {level}-{n}",
        correct_answer=1,
    )


def load_game(db, game_id):
    """Read a game's columns in a fresh session."""
    with db.get_session() as session:
        game = session.get(Game, game_id)
        return {
            'current_level': game.current_level,
            'prize': game.prize,
            'finished_at': game.finished_at,
            'is_failed': game.is_failed,
            'fifty_fifty_used': game.fifty_fifty_used,
            'audience_help_used': game.audience_help_used,
            'friend_call_used': game.friend_call_used,
        }


def balance_of(db, user_id):
    with db.get_session() as session:
        return session.get(User, user_id).balance


def correct_key(db, game_id, level=None):
    with db.get_session() as session:
        game = session.get(Game, game_id)
        question = game.question_at(game.current_level if level is None else level)
        return question.correct_answer_key()


def wrong_key(db, game_id):
    right = correct_key(db, game_id)
    return next(letter for letter in 'abcd' if letter != right)


def answer_correctly(engine, db, game_id, times):
    for _ in range(times):
        assert engine.answer_current_question(game_id, correct_key(db, game_id)) is True
