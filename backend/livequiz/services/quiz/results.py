"""Cross-player, cross-question summaries of a session.

The aggregate helpers work on the plain results payload (a list of
``{'name': ..., 'answers': [record dicts]}``) so they can be fed straight
from :func:`session_results` or from a cached response.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from livequiz.services import store
from .questions import session_questions


def session_results(session_id) -> List[Dict[str, Any]]:
    session = store.get_session(session_id)
    return [
        {'name': player.name, 'answers': [record.to_dict() for record in player.answers]}
        for player in session.players
    ]


def _answer_at(player_result: Dict[str, Any], index: int) -> Optional[Dict[str, Any]]:
    answers = player_result.get('answers') or []
    for answer in answers:
        if answer.get('questionIndex', None) == index:
            return answer
    # Payloads without indexes are positional
    if index < len(answers) and 'questionIndex' not in answers[index]:
        return answers[index]
    return None


def _parse_time(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith('Z'):
        text = text[:-1]
    return datetime.fromisoformat(text)


def top_players(results_data: Sequence[Dict[str, Any]], n: int = 5) -> List[Dict[str, Any]]:
    scored = [
        {
            'name': player['name'],
            'score': sum(1 for answer in player.get('answers') or [] if answer.get('correct')),
        }
        for player in results_data
    ]
    # sorted() is stable, so equal scores keep join order
    ranked = sorted(scored, key=lambda row: row['score'], reverse=True)
    return ranked[:n]


def per_question_correct_count(results_data: Sequence[Dict[str, Any]], questions: Sequence[Any]) -> List[int]:
    counts = []
    for index in range(len(questions)):
        counts.append(sum(1 for player in results_data if (_answer_at(player, index) or {}).get('correct')))
    return counts


def per_question_accuracy(results_data: Sequence[Dict[str, Any]], questions: Sequence[Any]) -> List[float]:
    total_players = len(results_data)
    return [
        round((correct_count / total_players) * 100, 1) if total_players else 0.0
        for correct_count in per_question_correct_count(results_data, questions)
    ]


def per_question_completion_rate(results_data: Sequence[Dict[str, Any]], questions: Sequence[Any]) -> List[float]:
    """Share of players who submitted something for each question.

    Non-responders get ``answeredAt`` stamped when the window closes, so a
    completed answer is one with a non-empty answer set.
    """
    total_players = len(results_data)
    rates = []
    for index in range(len(questions)):
        answered = sum(1 for player in results_data if (_answer_at(player, index) or {}).get('answers'))
        rates.append(round((answered / total_players) * 100, 1) if total_players else 0.0)
    return rates


def per_question_avg_response_time(results_data: Sequence[Dict[str, Any]], questions: Sequence[Any]) -> List[float]:
    averages = []
    for index in range(len(questions)):
        durations = []
        for player in results_data:
            answer = _answer_at(player, index)
            if not answer:
                continue
            started = _parse_time(answer.get('questionStartedAt'))
            answered = _parse_time(answer.get('answeredAt'))
            if started is None or answered is None:
                continue
            durations.append((answered - started).total_seconds())
        averages.append(round(sum(durations) / len(durations), 1) if durations else 0)
    return averages


def summarize(session_id, top_n: int = 5) -> Dict[str, Any]:
    session = store.get_session(session_id)
    questions = session_questions(session)
    results_data = session_results(session_id)
    accuracy = per_question_accuracy(results_data, questions)
    correct_counts = per_question_correct_count(results_data, questions)
    completion = per_question_completion_rate(results_data, questions)
    response_times = per_question_avg_response_time(results_data, questions)
    return {
        'topPlayers': top_players(results_data, top_n),
        'questions': [
            {
                'questionNumber': f"Q{index + 1}",
                'text': question.text,
                'correctCount': correct_counts[index],
                'totalPlayers': len(results_data),
                'percentCorrect': accuracy[index],
                'completionRate': completion[index],
                'avgResponseTime': response_times[index],
            }
            for index, question in enumerate(questions)
        ],
    }
