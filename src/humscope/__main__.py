import sys

from humscope.cli import main

sys.exit(main())
