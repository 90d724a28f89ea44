import sys

from cryptosoft.cli import main


sys.exit(main())
