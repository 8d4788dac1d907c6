from ghcontrib.cli import main

main()
