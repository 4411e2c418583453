from fipsbuild.cli import main

main()
