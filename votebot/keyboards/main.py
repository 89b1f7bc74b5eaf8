# votebot/keyboards/main.py
from aiogram.types import ReplyKeyboardMarkup, KeyboardButton

BTN_PHASE = "🗓 Phase"
BTN_COLLECTIONS = "🗳 Collections"
BTN_WINNERS = "🏆 Winners"
BTN_HISTORY = "📈 History"


def main_menu_kb() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text=BTN_PHASE), KeyboardButton(text=BTN_COLLECTIONS)],
            [KeyboardButton(text=BTN_WINNERS), KeyboardButton(text=BTN_HISTORY)],
        ],
        resize_keyboard=True,
        input_field_placeholder="Choose an action…",
        selective=False,
        one_time_keyboard=False,
    )
