"""Arena runtime services: phase scheduling, rooms and the tick loop.

Routes and socket handlers import from here; the scheduler and rooms
know nothing about HTTP.
"""
