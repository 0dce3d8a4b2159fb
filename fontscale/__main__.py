import sys


def main() -> None:
    if sys.version_info < (3, 11, 0):
        version = '.'.join(str(v) for v in sys.version_info[:3])
        sys.stderr.write(
            f'Error: fontscale requires Python 3.11.0 or later but runs on {version}.\n'
        )
        sys.exit(1)

    # Delay importing tool, since it uses 3.11 syntax and types.
    from .tool import run
    sys.exit(run(sys.argv))


if __name__ == '__main__':
    main()
