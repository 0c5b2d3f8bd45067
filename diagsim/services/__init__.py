"""
Services package - I/O around the simulation core.
Diagram files (JSON/YAML) and CSV input/output series.
"""

from diagsim.services.csv_service import InputSeries, write_output_csv, write_trace_csv
from diagsim.services.file_service import FileService

__all__ = ['FileService', 'InputSeries', 'write_output_csv', 'write_trace_csv']
