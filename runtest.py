#!/usr/bin/env python3

import os
import sys
import traceback
import unittest


if __name__ == '__main__':
    successful = False

    def printbar(title: str) -> None:
        print(f'\n─── {title} {"─" * (66 - len(title))}')

    try:
        printbar('Python')
        print(f'    {sys.executable} {".".join(str(v) for v in sys.version_info[:3])}')
        printbar('Current Directory')
        print(f'    {os.getcwd()}')
        printbar('Unit Testing')
        runner = unittest.main(
            module='test',
            exit=False,
            testRunner=unittest.TextTestRunner(stream=sys.stdout, verbosity=2),
        )
        successful = runner.result.wasSuccessful()
    except Exception as x:
        print(''.join(traceback.format_exception(x)), file=sys.stderr)

    sys.exit(not successful)
