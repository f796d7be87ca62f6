# load_diagnostics/exporters/json_exporter.py - JSON format exporter
"""
Exports analysis results as JSON files.
"""

import json
from pathlib import Path
from datetime import datetime
from typing import Optional
import logging


class JSONExporter:
    """
    Exports analysis results to JSON format.

    Provides structured JSON output for further processing or dashboards.
    """

    def __init__(self, output_dir: Optional[str] = None):
        """
        Initialize the JSON exporter.

        Args:
            output_dir: Directory to save JSON files (default: current directory)
        """
        self.output_dir = Path(output_dir) if output_dir else Path('.')
        self.logger = logging.getLogger(__name__)

        self.output_dir.mkdir(parents=True, exist_ok=True)

    def export_analysis(self, result, filename: Optional[str] = None) -> str:
        """
        Export an analysis result to a JSON file.

        Args:
            result: Any analysis result (table, overview, no-data or error)
            filename: Output filename (auto-generated if not provided)

        Returns:
            Path to output file
        """
        if not filename:
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            slug = result.target.replace('.', '_').replace(' ', '_')
            filename = f'{result.kind}_{slug}_{timestamp}.json'

        output_path = self.output_dir / filename

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump({
                'timestamp': datetime.now().isoformat(),
                'status': result.status,
                'analysis': result.to_dict(),
            }, f, indent=2, default=str)

        self.logger.info(f"Exported {result.kind} result for {result.target} to {output_path}")
        return str(output_path)
