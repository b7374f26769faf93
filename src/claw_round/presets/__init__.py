from .basic import RoundSetup, default_preset_path, make_session

__all__ = ["RoundSetup", "default_preset_path", "make_session"]
