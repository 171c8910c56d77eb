__version__ = "0.1.0"
__author__ = "ydoc"
__description__ = "物化路径文档树存储层"
