from __future__ import annotations

from pathlib import Path

SAMPLE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<RECIPES>
  <RECIPE>
    <NAME>Cosmic Pale Ale</NAME>
    <VERSION>1</VERSION>
    <TYPE>All Grain</TYPE>
    <BREWER>Jean &amp; Marie</BREWER>
    <BATCH_SIZE>20.00</BATCH_SIZE>
    <BOIL_SIZE>25.00</BOIL_SIZE>
    <BOIL_TIME>60</BOIL_TIME>
    <EFFICIENCY>72.0</EFFICIENCY>
    <OG>1.052</OG>
    <FG>1.011</FG>
    <ABV>5.38</ABV>
    <IBU>35.0</IBU>
    <COLOR>7.5</COLOR>
    <NOTES>Dry hop &lt;3 days</NOTES>
    <STYLE>
      <NAME>American Pale Ale</NAME>
      <CATEGORY>Pale American Ale</CATEGORY>
      <OG_MIN>1.045</OG_MIN>
      <OG_MAX>1.060</OG_MAX>
      <IBU_MIN>30</IBU_MIN>
      <IBU_MAX>50</IBU_MAX>
      <TYPE>Ale</TYPE>
    </STYLE>
    <FERMENTABLES>
      <FERMENTABLE>
        <NAME>Pale Malt (2 Row)</NAME>
        <TYPE>Grain</TYPE>
        <AMOUNT>4.500</AMOUNT>
        <YIELD>80.0</YIELD>
        <COLOR>2.0</COLOR>
      </FERMENTABLE>
      <FERMENTABLE>
        <NAME>Crystal 40</NAME>
        <TYPE>Grain</TYPE>
        <AMOUNT>0.350</AMOUNT>
        <YIELD>74.0</YIELD>
        <COLOR>40.0</COLOR>
      </FERMENTABLE>
    </FERMENTABLES>
    <HOPS>
      <HOP>
        <NAME>Cascade</NAME>
        <ALPHA>5.5</ALPHA>
        <AMOUNT>0.0300</AMOUNT>
        <USE>Boil</USE>
        <TIME>60</TIME>
        <FORM>Pellet</FORM>
      </HOP>
      <HOP>
        <NAME>Citra</NAME>
        <ALPHA>12.0</ALPHA>
        <AMOUNT>0.0250</AMOUNT>
        <USE>Boil</USE>
        <TIME>10</TIME>
      </HOP>
    </HOPS>
    <YEASTS>
      <YEAST>
        <NAME>Safale US-05</NAME>
        <TYPE>Ale</TYPE>
        <FORM>Dry</FORM>
        <AMOUNT>0.011</AMOUNT>
        <LABORATORY>Fermentis</LABORATORY>
        <PRODUCT_ID>US-05</PRODUCT_ID>
      </YEAST>
    </YEASTS>
    <MISCS>
      <MISC>
        <NAME>Irish Moss</NAME>
        <TYPE>Fining</TYPE>
        <USE>Boil</USE>
        <TIME>15</TIME>
        <AMOUNT>0.005</AMOUNT>
      </MISC>
    </MISCS>
    <WATERS/>
    <MASH>
      <NAME>Single Infusion</NAME>
      <GRAIN_TEMP>20.0</GRAIN_TEMP>
      <MASH_STEPS>
        <MASH_STEP>
          <NAME>Saccharification</NAME>
          <TYPE>Infusion</TYPE>
          <STEP_TEMP>67.0</STEP_TEMP>
          <STEP_TIME>60</STEP_TIME>
          <INFUSE_AMOUNT>15.00</INFUSE_AMOUNT>
        </MASH_STEP>
      </MASH_STEPS>
    </MASH>
  </RECIPE>
</RECIPES>
"""

MINIMAL_XML = """<RECIPES>
  <RECIPE>
    <NAME>Quick Stout</NAME>
    <TYPE>Extract</TYPE>
    <BATCH_SIZE>10</BATCH_SIZE>
    <BOIL_SIZE>12</BOIL_SIZE>
    <BOIL_TIME>45</BOIL_TIME>
    <EFFICIENCY></EFFICIENCY>
    <FERMENTABLES>
      <FERMENTABLE>
        <NAME>Dark Extract</NAME>
        <AMOUNT>2</AMOUNT>
      </FERMENTABLE>
    </FERMENTABLES>
    <HOPS>
      <HOP>
        <NAME>Fuggle</NAME>
        <AMOUNT>0.02</AMOUNT>
      </HOP>
    </HOPS>
  </RECIPE>
</RECIPES>
"""


def write_recipe(directory: Path, slug: str, content: str) -> Path:
    path = directory / f"{slug}.xml"
    path.write_text(content, encoding="utf-8")
    return path


