from .bodies import load_bodies, parse_bodies_dict
from .manifest import write_manifest
from .report import iter_report_lines, write_report, write_report_file
