# Overview: Static HSN/SAC -> GST rate table used when an item carries no explicit rate.

"""
Keys are 4-digit HSN headings (goods) or SAC headings (services).
A code whose heading is not listed has no rate here; lookups fail rather
than guess. Where a heading spans several rates the most common retail rate
is listed; an item that needs a different rate stores it explicitly in
gst_percentage.

Rates are percentages as strings so they load straight into Decimal.
"""

from __future__ import annotations

HSN_RATES: dict[str, tuple[str, str]] = {
    # Groceries & food
    "0401": ("0", "Milk (fresh, pasteurised)"),
    "0402": ("12", "Milk powder, condensed milk"),
    "0405": ("12", "Butter, ghee"),
    "0406": ("12", "Cheese, paneer"),
    "0701": ("0", "Potatoes (fresh)"),
    "0702": ("0", "Tomatoes (fresh)"),
    "0703": ("0", "Onions, garlic (fresh)"),
    "0803": ("0", "Bananas (fresh)"),
    "0804": ("0", "Dates, figs, pineapples (fresh)"),
    "0901": ("5", "Coffee"),
    "0902": ("5", "Tea"),
    "1001": ("0", "Wheat and meslin"),
    "1006": ("0", "Rice"),
    "1101": ("0", "Wheat flour (atta, maida, suji)"),
    "1512": ("5", "Sunflower oil, vegetable oil"),
    "1516": ("5", "Vanaspati"),
    "1701": ("5", "Sugar"),
    "1806": ("18", "Chocolates, cocoa products"),
    "1901": ("18", "Malt based health drinks"),
    "1905": ("18", "Biscuits, rusks, cakes"),
    "2007": ("12", "Jams, fruit jellies"),
    "2008": ("12", "Roasted nuts, seeds"),
    "2103": ("12", "Sauces, ketchup, mustard"),
    "2106": ("12", "Namkeen, bhujia, snacks"),
    "2201": ("18", "Mineral water (branded)"),
    "2202": ("12", "Fruit juices (sweetened)"),
    # Electronics
    "8414": ("18", "Electric ceiling fans"),
    "8415": ("28", "Air conditioners"),
    "8418": ("18", "Refrigerators, freezers"),
    "8443": ("18", "Printers, scanners"),
    "8450": ("18", "Washing machines"),
    "8471": ("18", "Laptops, tablets, computers"),
    "8473": ("18", "Computer parts"),
    "8504": ("18", "Adapters, chargers, UPS"),
    "8507": ("28", "Inverter batteries"),
    "8509": ("18", "Mixers, grinders, juicers"),
    "8516": ("18", "Electric irons, kettles, heaters"),
    "8517": ("18", "Mobile phones"),
    "8518": ("18", "Headphones, speakers"),
    "8523": ("18", "Pen drives, memory cards"),
    "8525": ("18", "Cameras, CCTV"),
    "8528": ("18", "Monitors, projectors, TVs"),
    "8539": ("12", "LED bulbs, tube lights"),
    # Textiles
    "5208": ("5", "Cotton fabric"),
    "5407": ("5", "Synthetic fabric"),
    "5802": ("5", "Towels, terry fabric"),
    "6109": ("12", "T-shirts, vests"),
    "6115": ("12", "Socks, hosiery"),
    "6203": ("12", "Men's trousers, suits"),
    "6204": ("12", "Women's dresses, suits"),
    "6205": ("12", "Men's shirts"),
    "6207": ("12", "Men's underwear"),
    "6208": ("12", "Women's nightwear"),
    "6301": ("5", "Blankets"),
    "6302": ("12", "Bed sheets, pillow covers"),
    "6304": ("12", "Curtains, cushion covers"),
    # Footwear
    "6401": ("12", "Waterproof footwear"),
    "6402": ("18", "Sports shoes (rubber)"),
    "6403": ("18", "Leather shoes"),
    "6404": ("18", "Canvas shoes"),
    "6405": ("5", "Chappals, flip flops"),
    # Healthcare & personal care
    "3002": ("5", "Vaccines, blood products"),
    "3004": ("12", "Medicines"),
    "3006": ("12", "First aid kits, bandages"),
    "3304": ("18", "Face creams, makeup"),
    "3305": ("18", "Hair oils, shampoos"),
    "3306": ("18", "Toothpaste, mouthwash"),
    "3307": ("18", "Shaving cream, deodorants"),
    "3808": ("18", "Hand sanitiser"),
    "9018": ("12", "BP monitors, thermometers"),
    "9021": ("0", "Hearing aids, orthopaedic appliances"),
    # Hardware & construction
    "2523": ("28", "Cement"),
    "3208": ("18", "Paints, varnishes"),
    "3917": ("18", "PVC pipes, fittings"),
    "4410": ("18", "Plywood"),
    "6802": ("18", "Marble, granite"),
    "6907": ("18", "Vitrified tiles"),
    "6910": ("18", "Ceramic sinks, wash basins"),
    "7214": ("18", "Steel bars, TMT rods"),
    "7307": ("18", "Iron fittings, screws, bolts"),
    "7411": ("18", "Copper pipes"),
    "8536": ("18", "Switches, sockets, fuses"),
    "8544": ("18", "Electrical wires, cables"),
    # Furniture & home
    "3924": ("18", "Plastic buckets, mugs"),
    "7009": ("18", "Glass mirrors"),
    "9401": ("18", "Sofas, chairs"),
    "9403": ("18", "Furniture"),
    "9404": ("18", "Mattresses, quilts"),
    "9405": ("18", "Lamps, light fittings"),
    # Automobile
    "2710": ("18", "Engine oil, lubricants"),
    "4011": ("28", "Tyres"),
    "8511": ("28", "Spark plugs, ignition"),
    "8703": ("28", "Passenger cars"),
    "8708": ("28", "Car spare parts"),
    "8711": ("28", "Two wheelers"),
    "8714": ("12", "Bicycle parts"),
    # Jewellery
    "7113": ("3", "Jewellery (gold, silver, diamond)"),
    "7117": ("3", "Imitation jewellery"),
    # Stationery
    "4016": ("12", "Erasers"),
    "4802": ("12", "Printing paper"),
    "4817": ("12", "Envelopes, postcards"),
    "4820": ("12", "Notebooks, registers"),
    "9017": ("12", "Geometry boxes, rulers"),
    "9608": ("18", "Pens, markers"),
    "9609": ("12", "Pencils, crayons"),
    # Services (SAC)
    "9963": ("18", "Hotel and restaurant services"),
    "9964": ("5", "Transport services"),
    "9971": ("18", "Financial and insurance services"),
    "9972": ("18", "Real estate services (rent)"),
    "9982": ("18", "Legal and accounting services"),
    "9983": ("18", "IT services"),
    "9985": ("18", "Travel agent services"),
    "9987": ("18", "Maintenance and repair services"),
    "9991": ("18", "Government services"),
    "9992": ("18", "Education and training services"),
}
