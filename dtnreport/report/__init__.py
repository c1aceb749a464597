"""
dtnreport.report - Report output

Interval gate, output sinks and the occupancy/statistics reporter.
"""

from dtnreport.report.interval_gate import ObservationScheduler
from dtnreport.report.sink import (
    ReportSink, FileReportSink, MemoryReportSink, ReportOutputError
)
from dtnreport.report.reporter import Reporter

__all__ = ['ObservationScheduler', 'ReportSink', 'FileReportSink', 'MemoryReportSink',
           'ReportOutputError', 'Reporter']
