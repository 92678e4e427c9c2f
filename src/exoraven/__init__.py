"""
exoraven - Exoscript Static Analyzer

A Python toolkit for checking, outlining and navigating Exoscript
narrative scripts.
"""

__version__ = "0.1.0"
__author__ = "exoraven contributors"

from exoraven.parser import parse_file, parse_source
from exoraven.analysis import AnalysisResult, analyze_text, analyze_file
