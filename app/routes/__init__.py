from .write_offs import write_offs_bp, check_write_offs_command

__all__ = ["write_offs_bp", "check_write_offs_command"]
