from blereceipt.cli import main

main()
