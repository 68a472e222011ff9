import os
from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

log_level = os.getenv("LOG_LEVEL", "INFO").upper()

dice_roll_delay = float(os.getenv("DICE_ROLL_DELAY", "2.0"))
shuffle_delay = float(os.getenv("SHUFFLE_DELAY", "3.0"))
shuffle_animation_delay = float(os.getenv("SHUFFLE_ANIMATION_DELAY", "3.0"))
deal_delay = float(os.getenv("DEAL_DELAY", "1.0"))
deal_animation_delay = float(os.getenv("DEAL_ANIMATION_DELAY", "2.0"))
trick_display_delay = float(os.getenv("TRICK_DISPLAY_DELAY", "2.5"))
draw_delay = float(os.getenv("DRAW_DELAY", "0.8"))
counting_delay = float(os.getenv("COUNTING_DELAY", "5.0"))

finished_room_retention = float(os.getenv("FINISHED_ROOM_RETENTION", "300"))
sweep_interval = float(os.getenv("SWEEP_INTERVAL", "60"))


class GameTimings(BaseModel):
    """Seconds to wait before each timed transition (client animations)."""

    dice_roll_delay: float = dice_roll_delay
    shuffle_delay: float = shuffle_delay
    shuffle_animation_delay: float = shuffle_animation_delay
    deal_delay: float = deal_delay
    deal_animation_delay: float = deal_animation_delay
    trick_display_delay: float = trick_display_delay
    draw_delay: float = draw_delay
    counting_delay: float = counting_delay
    finished_room_retention: float = finished_room_retention

    @classmethod
    def instant(cls) -> "GameTimings":
        return cls(**{name: 0.0 for name in cls.model_fields})


if __name__ == "__main__":
    print(log_level, GameTimings())
