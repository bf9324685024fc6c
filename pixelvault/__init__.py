"""PixelVault

音乐应用用户数据的备份与恢复引擎
"""

__version__ = "3.0.0"

__all__ = ["__version__"]
