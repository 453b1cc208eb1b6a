"""Storage key names shared by the widgets"""

USERNAME = 'leaderboard_username'
LEADERBOARD_ATTEMPTS = 'leaderboard_attempts'
FINGERPRINT_LOGS = 'fingerprint_logs'
CHAT_LAST_READ = 'chat_last_read'
EXAM_ATTEMPTS = 'exam_attempts'


def exam_state(page_path):
    return 'examState:' + page_path


def exam_order(page_path):
    return 'examOrder:' + page_path


def last_score(page_path):
    return exam_state(page_path) + ':lastScore'


def exam_score(exam_id):
    return 'examScore:' + exam_id


def locked_questions(page_path):
    return exam_state(page_path) + ':locked'
