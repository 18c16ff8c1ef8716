"""Animation steps for views."""
from archcode.animation.sequencer import AnimationSequencer

__all__ = ["AnimationSequencer"]
