"""Example: Word Count on Hadoop Streaming

The classic MapReduce job, written against sluice's mapper and reducer stages:
- The mapper tokenizes each line and emits "<word>\\t1"
- The reducer sums the counts of each word (input arrives sorted by key)
- Lines that aren't valid UTF-8 never reach either stage
- Per-job state (a token counter) lives in the Context

Run locally, simulating the shuffle with sort:
    cat input.txt | python -m examples.word_count map | sort | python -m examples.word_count reduce

Or hand it to Hadoop Streaming:
    hadoop jar hadoop-streaming.jar \\
        -mapper "python -m examples.word_count map" \\
        -reducer "python -m examples.word_count reduce" \\
        -input in/ -output out/
"""

import logging
import re
import sys

from sluice import Context, Mapper, Reducer, configure_logging, run_mapper, run_reducer

WORD_REGEX = re.compile(r"\w+")

logger = logging.getLogger("sluice.examples.word_count")


class Tokenize(Mapper):
    def setup(self, context: Context) -> None:
        context["tokens"] = 0
        task = context.get_config("mapreduce.task.id", "local")
        logger.info("Mapper starting on task %s", task)

    def map(self, key: int, value: str, context: Context) -> None:
        for match in WORD_REGEX.finditer(value.lower()):
            sys.stdout.write(f"{match.group(0)}\t1\n")
            context["tokens"] += 1

    def cleanup(self, context: Context) -> None:
        logger.info("Mapper emitted %d tokens", context["tokens"])


class Total(Reducer):
    def reduce(self, key: str, values: list[str], context: Context) -> None:
        total = 0
        for value in values:
            # Bad counts are the stage's problem, not the driver's
            try:
                total += int(value)
            except ValueError:
                continue
        sys.stdout.write(f"{key}\t{total}\n")


def main() -> None:
    configure_logging(level=logging.INFO)
    role = sys.argv[1] if len(sys.argv) > 1 else "map"
    if role == "map":
        run_mapper(Tokenize(), job_name="wordcount-map")
    elif role == "reduce":
        run_reducer(Total(), job_name="wordcount-reduce")
    else:
        sys.exit(f"Unknown role {role!r}, expected 'map' or 'reduce'")


if __name__ == "__main__":
    main()
