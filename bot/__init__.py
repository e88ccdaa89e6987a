"""
Telegram bot layer for Millionaire Trivia.
Contains keyboards, message texts and game handlers.
"""
