"""
スケジュール相談用プロンプトの組み立て

関連クラス:
  - assistant.ScheduleAssistant: このモジュールで作ったプロンプトを送信する
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, List, Sequence

from src.daybook.aggregator import day_key, percent_of
from src.daybook.models import Note, Snapshot, Task

from .preferences import UserPreferences

RECENT_NOTES = 5

WORK_STYLE_ADVICE = {
    "efficient": "効率重視タイプです。重要なタスクに集中し、計画を立てすぎないようにしましょう",
    "balanced": "バランス型です。時間を上手に配分し、仕事と生活のバランスを保ちましょう",
    "creative": "クリエイティブ型です。ひらめきのための時間を残し、柔軟に予定を組みましょう",
    "analytical": "分析型です。詳細な計画を立て、データに基づいて判断しましょう",
    "spontaneous": "柔軟型です。オープンな姿勢を保ち、変化に合わせて調整しましょう",
}

COMMUNICATION_TONE = {
    "friendly": "温かく親しみやすい",
    "professional": "丁寧で専門的",
    "casual": "気軽でユーモアのある",
}

PRIORITY_LABELS = {"high": "🔴高", "medium": "🟡中", "low": "🟢低"}

UPDATE_PREFERENCES_FORMAT = """{
  "action": "update_preferences",
  "preferences": {
    "name": "ユーザー名",
    "workStyle": "efficient|balanced|creative|analytical|spontaneous",
    "communicationStyle": "friendly|professional|casual",
    "reminderFrequency": "low|moderate|high",
    "goalFocus": "productivity|work_life_balance|creativity|learning"
  }
}"""


def analyze_work_patterns(tasks: Sequence[Task], today: date) -> str:
    """タスクの傾向から作業スタイルを短く言語化する"""
    if not tasks:
        return "新しいユーザー（作業習慣を学習中）"

    patterns: List[str] = []
    high = sum(1 for task in tasks if task.priority.value == "high")
    completion = sum(1 for task in tasks if task.completed) / len(tasks) * 100

    if high / len(tasks) > 0.5:
        patterns.append("高優先度のタスクが多い")
    if completion > 80:
        patterns.append("実行力が高い")
    elif completion < 50:
        patterns.append("時間管理の改善余地あり")

    today_key = day_key(today)
    if sum(1 for task in tasks if task.date == today_key) > 5:
        patterns.append("予定を1日に集中させがち")
    if sum(1 for task in tasks if _days_since(task.date, today) <= 7) > 20:
        patterns.append("作業量が多い")

    return "、".join(patterns) if patterns else "バランス型"


def personalized_greeting(preferences: UserPreferences, hour: int) -> str:
    greeting = f"こんにちは、{preferences.name}さん" if preferences.name else "こんにちは"
    if hour < 12:
        return greeting + "！おはようございます"
    if hour < 18:
        return greeting + "！良い午後を"
    return greeting + "！こんばんは"


def work_style_advice(work_style: str) -> str:
    return WORK_STYLE_ADVICE.get(work_style, WORK_STYLE_ADVICE["balanced"])


def build_prompt(message: str, snapshot: Snapshot, preferences: UserPreferences, now: datetime) -> str:
    """現在のノート・タスク・個人設定から1つのプロンプトを組み立てる"""
    today = now.date()
    tomorrow = day_key(today + timedelta(days=1))
    tasks = list(snapshot.tasks)
    completion_rate = percent_of(sum(1 for task in tasks if task.completed), len(tasks))

    today_tasks = _describe_tasks(
        (task for task in tasks if task.date == day_key(today)), with_status=True
    )
    tomorrow_tasks = _describe_tasks((task for task in tasks if task.date == tomorrow), with_status=False)
    recent = _describe_notes(snapshot.notes[:RECENT_NOTES])

    name_rule = f"「{preferences.name}さん」と呼ぶ" if preferences.name else "親しみを込めて呼びかける"
    tone = COMMUNICATION_TONE.get(preferences.communication_style, COMMUNICATION_TONE["friendly"])

    return f"""あなたはユーザー専属のスケジュールアシスタント「kk」です。ユーザーの作業習慣と好みを理解し、個別に寄り添った予定管理をサポートします。

## ユーザー情報
- 名前：{preferences.name or "ユーザー"}
- 現在日時：{now.strftime("%Y-%m-%d %H:%M")}
- タスク完了率：{completion_rate}%
- 作業傾向：{analyze_work_patterns(tasks, today)}
- スタイル：{work_style_advice(preferences.work_style)}

## 今日の状況
- 今日のタスク：{today_tasks or "なし"}
- 明日の予定：{tomorrow_tasks or "なし"}

## 最近の記録
{recent or "記録なし"}

## 回答スタイル
- 口調：{tone}
- 呼び方：{name_rule}
- あいさつ：{personalized_greeting(preferences, now.hour)}
- 具体的で実行しやすい提案を、見出しや箇条書きで簡潔に

## 特別な形式
ユーザーが個人設定の変更を求めた場合は、次のJSONだけを返してください：
{UPDATE_PREFERENCES_FORMAT}

## ユーザーのメッセージ
{message}
"""


def _describe_tasks(tasks: Iterable[Task], with_status: bool) -> str:
    parts = []
    for task in tasks:
        detail = f"{PRIORITY_LABELS[task.priority.value]}優先度"
        if with_status:
            detail += "、✅完了" if task.completed else "、⏳未完了"
        parts.append(f"「{task.text}」({detail})")
    return "、".join(parts)


def _describe_notes(notes: Iterable[Note]) -> str:
    return "\n".join(f"- {note.date}: {note.text}" for note in notes)


def _days_since(day: str, today: date) -> int:
    return (today - date.fromisoformat(day)).days
