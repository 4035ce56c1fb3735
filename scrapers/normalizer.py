from typing import List

from models import ResultRecord


def normalize_results(results: List[ResultRecord], pages: int) -> List[ResultRecord]:
    """Keep the first record for each title, then trim to pages * 10"""
    seen = set()
    unique = []
    for record in results:
        if record.title in seen:
            continue
        seen.add(record.title)
        unique.append(record)

    return unique[:pages * 10]
