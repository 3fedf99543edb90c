from protect_downloader.cli import main

main()
