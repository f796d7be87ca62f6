# load_diagnostics/exporters/stdout.py - Console output exporter
"""
Prints analysis reports to stdout in human-readable format.
"""

from colorama import Fore, Style, init
import logging

from load_diagnostics.analyzer.insight_synthesizer import Priority, top_insights


class StdoutExporter:
    """
    Prints analysis reports to stdout with colored output.
    """

    def __init__(self, use_colors: bool = True, max_insights: int = 3):
        """
        Initialize the stdout exporter.

        Args:
            use_colors: Whether to use colored output
            max_insights: Number of highlighted insights printed below the report
        """
        self.use_colors = use_colors
        self.max_insights = max_insights
        self.logger = logging.getLogger(__name__)

        if use_colors:
            init(autoreset=True)

    def print_report(self, result):
        """
        Print the rendered report of a result, followed by its top insights.

        Args:
            result: Any analysis result with a rendered report
        """
        print(result.report)

        highlighted = top_insights(result.insights, self.max_insights)
        if not highlighted:
            return

        print(self._color(Fore.CYAN, "=" * 80))
        print(self._color(Fore.CYAN, "Top insights"))
        print(self._color(Fore.CYAN, "=" * 80))

        for i, insight in enumerate(highlighted, 1):
            color = self._get_priority_color(insight.priority)
            print(self._color(color, f"{i}. [{insight.priority.value.upper()}] {insight.message}"))
        print()

    def print_summary(self, summary: str, status: str):
        """
        Print a one-line summary colored by status.

        Args:
            summary: Summary text
            status: Result status ('completed', 'no_data' or 'error')
        """
        if status == 'error':
            color = Fore.RED
        elif status == 'no_data':
            color = Fore.YELLOW
        else:
            color = Fore.GREEN
        print(self._color(color, summary))

    def _color(self, color: str, text: str) -> str:
        if not self.use_colors:
            return text
        return f"{color}{text}{Style.RESET_ALL}"

    def _get_priority_color(self, priority: Priority) -> str:
        """
        Get color based on insight priority.

        Args:
            priority: Insight priority

        Returns:
            Color code
        """
        if priority is Priority.HIGH:
            return Fore.RED
        elif priority is Priority.MEDIUM:
            return Fore.YELLOW
        else:
            return Fore.GREEN
