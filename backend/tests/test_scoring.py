import pytest

from livequiz.errors import InputError
from livequiz.services.quiz.questions import Question, QuestionType
from livequiz.services.quiz.scoring import is_correct, score


def make_question(qtype, correct, points=10, answer_ids=('1', '2', '3', '4')):
    return Question.from_dict({
        'id': 'q',
        'text': 'Question',
        'type': qtype,
        'duration': 10,
        'points': points,
        'answers': [{'id': a, 'text': a, 'isCorrect': a in correct} for a in answer_ids],
        'correctAnswers': list(correct),
    })


def test_single_choice_scores_only_the_correct_answer():
    question = make_question('single', ['2'], points=10)
    assert score(question, ['2']) == 10
    assert score(question, ['1']) == 0


def test_single_choice_rejects_more_than_one_answer():
    question = make_question('single', ['2'])
    assert score(question, ['2', '1']) == 0
    assert score(question, ['2', '2']) == 0


def test_multiple_choice_is_all_or_nothing():
    question = make_question('multiple', ['1', '3'], points=5)
    assert score(question, ['1', '3']) == 5
    assert score(question, ['3', '1']) == 5
    assert score(question, ['1']) == 0
    assert score(question, ['1', '2', '3']) == 0


@pytest.mark.parametrize('submitted', [['1'], ['3'], ['1', '3', '4'], ['1', '2', '3', '4']])
def test_multiple_choice_subsets_and_supersets_score_zero(submitted):
    question = make_question('multiple', ['1', '3'], points=5)
    assert score(question, submitted) == 0


def test_judgement_behaves_like_single_choice():
    question = make_question('judgement', ['1'], points=3, answer_ids=('1', '2'))
    assert score(question, ['1']) == 3
    assert score(question, ['2']) == 0


@pytest.mark.parametrize('qtype', ['single', 'multiple', 'judgement'])
def test_empty_submission_scores_zero(qtype):
    question = make_question(qtype, ['1'])
    assert score(question, []) == 0
    assert is_correct(question, None) is False


def test_numeric_answer_ids_compare_as_strings():
    question = make_question('single', ['2'])
    assert score(question, [2]) == 10


def test_correct_answers_derived_from_flags_when_missing():
    question = Question.from_dict({
        'id': 7,
        'text': 'Flags only',
        'type': 'multiple',
        'answers': [
            {'id': 1, 'text': 'a', 'isCorrect': True},
            {'id': 2, 'text': 'b', 'isCorrect': False},
            {'id': 3, 'text': 'c', 'isCorrect': True},
        ],
    }, default_duration=15, default_points=4)
    assert question.correct_answers == ['1', '3']
    assert question.duration == 15
    assert question.points == 4
    assert question.type is QuestionType.MULTIPLE


def test_player_view_hides_correctness():
    question = make_question('single', ['2'])
    payload = question.to_player_dict()
    assert 'correctAnswers' not in payload
    assert all(set(a) == {'id', 'text'} for a in payload['answers'])


def test_unknown_question_type_is_an_input_error():
    with pytest.raises(InputError):
        make_question('essay', ['1'])


def test_non_positive_duration_is_an_input_error():
    with pytest.raises(InputError):
        Question.from_dict({
            'type': 'single',
            'duration': 0,
            'answers': [{'id': '1', 'isCorrect': True}, {'id': '2'}],
        })
