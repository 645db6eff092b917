from .tape_machine import Instruction, TapeMachine

__all__ = ["Instruction", "TapeMachine"]
