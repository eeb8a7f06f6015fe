from arena import db
import string
import random


class Player(db.Model):
    __tablename__ = 'player'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    arena_id = db.Column(db.Integer, db.ForeignKey('arena.id'), nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    arena = db.relationship('Arena', back_populates='players')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'arena_id': self.arena_id,
            'is_active': self.is_active,
        }


def generate_arena_code(length=4):
    """Generate a unique, short arena code."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if not Arena.query.filter_by(arena_code=code).first():
            return code


class Arena(db.Model):
    __tablename__ = 'arena'
    id = db.Column(db.Integer, primary_key=True)
    arena_code = db.Column(db.String(4), unique=True, index=True)
    name = db.Column(db.String(64), nullable=False, default='Arena')
    status = db.Column(db.String(32), default='waiting')  # waiting, running, finished
    min_players = db.Column(db.Integer, nullable=False, default=2)
    max_players = db.Column(db.Integer, nullable=False, default=8)
    allow_new_players = db.Column(db.Boolean, default=True, nullable=False)
    # Friendly name of the running phase; None before the first tick and after the last phase
    current_phase = db.Column(db.String(64), nullable=True)
    # Wall-clock epoch at which the current phase may end, for client countdowns
    phase_deadline = db.Column(db.Float, nullable=True)
    players = db.relationship('Player', back_populates='arena', cascade='all, delete-orphan')
    phase_history = db.relationship('PhaseRecord', back_populates='arena', lazy='dynamic',
                                    cascade='all, delete-orphan', order_by='PhaseRecord.id')

    def __init__(self, **kwargs):
        super(Arena, self).__init__(**kwargs)
        if not self.arena_code:
            self.arena_code = generate_arena_code()

    def to_dict(self):
        return {
            'id': self.id,
            'arena_code': self.arena_code,
            'name': self.name,
            'status': self.status,
            'min_players': self.min_players,
            'max_players': self.max_players,
            'allow_new_players': self.allow_new_players,
            'current_phase': self.current_phase,
            'phase_deadline': self.phase_deadline,
            'players': [p.to_dict() for p in self.players],
        }


class PhaseRecord(db.Model):
    """One phase run of an arena, written on start and closed on end."""
    __tablename__ = 'phase_record'
    id = db.Column(db.Integer, primary_key=True)
    arena_id = db.Column(db.Integer, db.ForeignKey('arena.id'), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)
    phase_name = db.Column(db.String(64), nullable=False)
    duration_sec = db.Column(db.Float, nullable=False)
    started_at = db.Column(db.Float, nullable=False)
    ended_at = db.Column(db.Float, nullable=True)
    skipped = db.Column(db.Boolean, default=False, nullable=False)
    arena = db.relationship('Arena', back_populates='phase_history')

    def to_dict(self):
        return {
            'id': self.id,
            'position': self.position,
            'phase_name': self.phase_name,
            'duration_sec': self.duration_sec,
            'started_at': self.started_at,
            'ended_at': self.ended_at,
            'skipped': self.skipped,
        }
