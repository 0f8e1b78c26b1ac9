from ocr_submit.cli import main

main()
