# Streamlit UI that talks to the FastAPI backend
import os

import requests
import streamlit as st
from dotenv import load_dotenv

load_dotenv()

API = os.getenv("API_URL", "http://localhost:5000")

st.set_page_config(page_title="RFP Management", layout="wide")
st.title("RFP Management: Streamlit UI")

tabs = st.tabs(["Create RFP", "Vendors", "Send RFP", "Inbound (simulate)", "Compare"])


def show_error(r):
    try:
        body = r.json()
        st.error(f"{body.get('message', r.status_code)}: {body.get('error', '')}")
    except ValueError:
        st.error(r.text)


def fetch(path):
    r = requests.get(f"{API}{path}")
    return r.json().get("data", []) if r.ok else []


def rfp_options():
    return {f"{x.get('title', '')} ({x['id'][:8]}, {x.get('status')})": x["id"] for x in fetch("/api/rfps")}


def vendor_options():
    return {f"{v['name']} <{v['email']}>": v["id"] for v in fetch("/api/vendors")}


# Create RFP
with tabs[0]:
    st.header("Create RFP (from natural language)")
    prompt = st.text_area("Describe procurement need:",
                          "We need 20 laptops with 16GB RAM and 15 monitors 27 inch. Budget $50,000. "
                          "Delivery within 30 days. Net 30 payment. 1 year warranty.",
                          height=200)
    if st.button("Create RFP"):
        r = requests.post(f"{API}/api/rfps", json={"naturalLanguageInput": prompt})
        if r.ok:
            body = r.json()
            st.success("RFP created" + (" (fallback parser)" if body.get("usedFallback") else ""))
            st.json(body["data"])
        else:
            show_error(r)

# Vendors
with tabs[1]:
    st.header("Vendors")
    name = st.text_input("Name", value="Acme Co")
    email = st.text_input("Email", value="sales@acme.example")
    company = st.text_input("Company", value="")
    if st.button("Add Vendor"):
        r = requests.post(f"{API}/api/vendors", json={"name": name, "email": email, "company": company or None})
        if r.ok:
            st.success("Added vendor")
        else:
            show_error(r)
    search = st.text_input("Search vendors", value="")
    if st.button("Refresh vendor list"):
        r = requests.get(f"{API}/api/vendors", params={"search": search} if search else None)
        if r.ok:
            st.json(r.json()["data"])

# Send RFP
with tabs[2]:
    st.header("Select vendors and send RFP")
    rmap = rfp_options()
    sel_rfp_label = st.selectbox("Select RFP", options=list(rmap.keys()))
    vmap = vendor_options()
    sel_vendors = st.multiselect("Vendors to send to", options=list(vmap.keys()))
    if st.button("Send"):
        if not sel_rfp_label:
            st.error("Choose an RFP")
        else:
            rfp_id = rmap[sel_rfp_label]
            r = requests.post(f"{API}/api/rfps/{rfp_id}/vendors",
                              json={"vendorIds": [vmap[k] for k in sel_vendors]})
            if not r.ok:
                show_error(r)
            else:
                resp = requests.post(f"{API}/api/rfps/{rfp_id}/send")
                if resp.ok:
                    for res in resp.json()["data"]["results"]:
                        if res["sent"]:
                            st.success(f"Sent to {res['vendorName']} ({res['email']})")
                        else:
                            st.warning(f"{res['vendorName']}: {res.get('error')}")
                else:
                    show_error(resp)
    if st.button("Check inbox for replies"):
        if sel_rfp_label:
            r = requests.post(f"{API}/api/proposals/check-emails", json={"rfpId": rmap[sel_rfp_label]})
            if r.ok:
                st.info(r.json()["message"])
            else:
                show_error(r)

# Inbound simulate
with tabs[3]:
    st.header("Simulate a vendor reply")
    rmap = rfp_options()
    vmap = vendor_options()
    sel_rfp = st.selectbox("RFP", options=list(rmap.keys()), key="sim_rfp")
    sel_vendor = st.selectbox("Vendor", options=list(vmap.keys()), key="sim_vendor")
    body = st.text_area("Reply body",
                        value="We can supply everything for $45,000. Delivery in 25 days. "
                              "Net 30. 2 year warranty included.")
    if st.button("Submit reply"):
        if not sel_rfp or not sel_vendor:
            st.error("Choose an RFP and a vendor")
        else:
            payload = {"rfpId": rmap[sel_rfp], "vendorId": vmap[sel_vendor], "proposalText": body}
            r = requests.post(f"{API}/api/proposals/simulate", json=payload)
            if r.ok:
                st.success("Reply processed")
                st.json(r.json()["data"].get("parsedData"))
            else:
                show_error(r)

# Compare
with tabs[4]:
    st.header("Compare proposals for RFP")
    rmap = rfp_options()
    sel = st.selectbox("RFP", options=list(rmap.keys()), key="cmp_rfp")
    if st.button("Compare"):
        if not sel:
            st.error("Choose RFP")
        else:
            resp = requests.get(f"{API}/api/rfps/{rmap[sel]}/compare")
            if resp.ok:
                data = resp.json()["data"]
                rec = data["recommendation"]
                st.subheader(f"Recommended: {rec.get('recommendedVendorName')}")
                st.write(rec.get("reasoning"))
                if rec.get("alternativeOption"):
                    st.caption(f"Alternative: {rec['alternativeOption']}")
                if data.get("vendorScores"):
                    st.dataframe([
                        {"Vendor": s["vendorName"], "Price": s["priceScore"], "Delivery": s["deliveryScore"],
                         "Terms": s["termsScore"], "Overall": s["overallScore"]}
                        for s in data["vendorScores"]
                    ])
                st.json(data)
            else:
                show_error(resp)
