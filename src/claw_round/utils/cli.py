import argparse


def build_parser():
    parser = argparse.ArgumentParser(description='Claw machine round layout preview')
    parser.add_argument('--preset', type=str, default=None, metavar='PATH',
                        help='round preset YAML (default: bundled presets/default.yaml)')
    parser.add_argument('--seed', type=str, default=None, metavar='SEED',
                        help='run seed, 6 characters A-Z0-9 (default: preset seed or a fresh one)')
    parser.add_argument('--max_retries', type=int, default=None, metavar='N',
                        help='placement retries per ball (default: from the preset)')
    parser.add_argument('--json', type=str, default=None, metavar='PATH',
                        help='write the placed layout to this JSON file')
    parser.add_argument(
        "--log_level",
        type=str,
        default=None,
        help="logging level (default: CLAW_ROUND_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--quiet",
        action='store_true',
        help="only print the summary line, not every placed ball"
    )
    return parser

'''
usage: python scripts/preview_layout.py --preset presets/default.yaml --seed ABC123 \
    --max_retries 200 --json results/layout.json
'''
